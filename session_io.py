import csv
import json
import os
from io import StringIO
from typing import Dict, List, Sequence, Tuple

from doubles_scheduler import Round

SESSION_FILE = "practice_session.json"


def robust_json_load(f):
    try:
        return json.load(f)
    except json.JSONDecodeError as e:
        # Try to recover from extra data by loading only the first JSON object
        f.seek(0)
        raw = f.read()
        depth = 0
        for i, c in enumerate(raw):
            if c == '{':
                depth += 1
            elif c == '}':
                depth -= 1
                if depth == 0:
                    try:
                        return json.loads(raw[:i+1])
                    except json.JSONDecodeError as e2:
                        raise ValueError(f"Corrupt or invalid JSON in file: {e2}") from e2
        raise ValueError(f"Extra data found in file and could not recover: {e}") from e


def save_session(path: str, players: Sequence[Dict], history: Sequence[Round]):
    data = {
        'players': list(players),
        'rounds': [rnd.to_dict() for rnd in history],
    }
    with open(path, "w", encoding="utf-8") as file:
        json.dump(data, file, default=str)


def load_session(path: str) -> Tuple[List[Dict], List[Round]]:
    if not os.path.exists(path):
        return [], []
    with open(path, "r", encoding="utf-8") as file:
        data = robust_json_load(file)
    if not isinstance(data, dict):
        raise ValueError(f"Session file {path} does not hold a session object")
    try:
        history = [Round.from_dict(r) for r in data.get('rounds', [])]
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid round data in {path}: {e}") from e
    history.sort(key=lambda r: r.round_no)
    return list(data.get('players', [])), history


def rounds_to_csv(history: Sequence[Round], names: Dict[int, str] = None) -> str:
    names = names or {}

    def label(pid):
        return names.get(pid, str(pid))

    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(["Round", "Court", "Team 1", "Team 2", "Rest"])
    for rnd in history:
        for court in rnd.courts:
            t1 = ' & '.join(label(pid) for pid in court.pair_a)
            t2 = ' & '.join(label(pid) for pid in court.pair_b)
            writer.writerow([rnd.round_no, court.court_no, t1, t2, ''])
        if rnd.rests:
            writer.writerow([rnd.round_no, '', '', '', ', '.join(label(pid) for pid in rnd.rests)])
    return output.getvalue()
