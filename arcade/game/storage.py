import json
import logging
import os


class InMemoryHighScoreStore:
    """High score kept in process memory; lost on restart."""

    def __init__(self, initial: int = 0):
        self._value = initial
        self.writes = 0

    def read(self) -> int:
        return self._value

    def write(self, score: int) -> None:
        self._value = score
        self.writes += 1


class JsonHighScoreStore:
    """
    High score persisted as ``{"high_score": n}`` in a JSON file.

    A missing file reads as 0. A broken file is logged and also reads as 0,
    and failed writes are logged, so storage trouble never reaches the
    session controller.
    """

    def __init__(self, path: str = "data/high_score.json"):
        self.path = path

    def read(self) -> int:
        if not os.path.exists(self.path):
            logging.info(f"High score file not found, starting from 0: {self.path}")
            return 0
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            value = int(data.get("high_score", 0))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logging.error(f"High score load error ({self.path}): {e}")
            return 0
        logging.info(f"High score loaded: {value}")
        return max(0, value)

    def write(self, score: int) -> None:
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump({"high_score": score}, f)
        except OSError as e:
            logging.error(f"High score save error ({self.path}): {e}")
            return
        logging.info(f"High score saved: {score}")
