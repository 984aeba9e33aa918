"""
Tabular export of a roster snapshot.
"""

from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

from .names import display_name, is_loth
from .roster.snapshot import RosterSnapshot

COLUMNS = ["Divine", "Rank", "Name", "LOTH", "Position"]


def roster_records(snapshot: RosterSnapshot) -> List[Dict]:
    """One record per member; the high priest first with an empty Divine."""
    records = []
    if snapshot.high_priest is not None:
        records.append({
            "Divine": "",
            "Rank": snapshot.high_priest.title,
            "Name": display_name(snapshot.high_priest.entry),
            "LOTH": snapshot.high_priest.loth,
            "Position": 0,
        })

    position = {}
    for divine, rank, entry in snapshot.iter_entries():
        key = (divine, rank)
        position[key] = position.get(key, 0) + 1
        records.append({
            "Divine": divine,
            "Rank": rank,
            "Name": display_name(entry),
            "LOTH": is_loth(entry),
            "Position": position[key],
        })
    return records


def roster_frame(snapshot: RosterSnapshot) -> pd.DataFrame:
    """Snapshot as a DataFrame with COLUMNS."""
    return pd.DataFrame(roster_records(snapshot), columns=COLUMNS)


def export_csv(snapshot: RosterSnapshot, output_path: Union[str, Path]) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    roster_frame(snapshot).to_csv(output_path, index=False)
    return output_path
