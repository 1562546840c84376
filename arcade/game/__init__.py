"""Session core: board model, selection and delay rules, the controller and its ports.

Nothing in this package knows about HTTP or websockets; the web adapter in
``arcade.main`` drives it through the two controller entry points.
"""
