import json
from pathlib import Path


def write_json_file(file_path: str | Path, data: str) -> None:
    """Write a string-represented JSON document to a file, creating parent folders

    Args:
        file_path (str | Path): The path to the file to write
        data (str): The JSON document to write
    """
    path = Path(file_path)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(data + "\n")


def read_json_file(file_path: str | Path) -> dict:
    """Read a JSON file and return its decoded content

    Args:
        file_path (str | Path): The path to the file to read
    """
    with open(file_path, "r") as f:
        return json.load(f)
