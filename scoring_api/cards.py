# scoring_api/cards.py
from __future__ import annotations

from typing import Any, Dict, List, Sequence

import pandas as pd

from scoring_api.models import BallEvent, Over
from scoring_api.overs_math import (
    DEFAULT_BALLS_PER_OVER,
    economy,
    format_overs,
    overs_notation,
    strike_rate,
)

LEDGER_COLUMNS = [
    "sequence_index",
    "over_number",
    "ball_number",
    "striker_id",
    "non_striker_id",
    "bowler_id",
    "runs_off_bat",
    "wide",
    "no_ball",
    "bye",
    "leg_bye",
    "penalty",
    "total_runs",
    "is_legal",
    "boundary",
    "wicket_type",
    "dismissed_player_id",
    "wicket_bowler_id",
    "fielder_id",
]


def ledger_frame(balls: Sequence[BallEvent]) -> pd.DataFrame:
    """
    One row per delivery, in ledger order.
    Missing text fields are "" (not NaN) so string comparisons stay simple.
    """
    rows: List[Dict[str, Any]] = []
    for b in balls:
        w = b.wicket
        rows.append({
            "sequence_index": b.sequence_index,
            "over_number": b.over_number,
            "ball_number": b.ball_number,
            "striker_id": b.striker_id,
            "non_striker_id": b.non_striker_id,
            "bowler_id": b.bowler_id,
            "runs_off_bat": b.runs_off_bat,
            "wide": b.extras.wide,
            "no_ball": b.extras.no_ball,
            "bye": b.extras.bye,
            "leg_bye": b.extras.leg_bye,
            "penalty": b.extras.penalty,
            "total_runs": b.total_runs,
            "is_legal": b.is_legal,
            "boundary": b.boundary or "",
            "wicket_type": w.type if w else "",
            "dismissed_player_id": w.dismissed_player_id if w else "",
            "wicket_bowler_id": (w.bowler_id or "") if w else "",
            "fielder_id": (w.fielder_id or "") if w else "",
        })
    return pd.DataFrame(rows, columns=LEDGER_COLUMNS)


def batting_card(balls: Sequence[BallEvent]) -> List[dict]:
    """
    Every batter who appeared at either end, in order of appearance.
    Balls faced exclude wides but include no-balls.
    """
    df = ledger_frame(balls)
    if df.empty:
        return []

    order = pd.unique(df[["striker_id", "non_striker_id"]].to_numpy().ravel())

    df = df.assign(
        faced=(df["wide"] == 0).astype(int),
        four=(df["boundary"] == "four").astype(int),
        six=(df["boundary"] == "six").astype(int),
    )
    grouped = (
        df.groupby("striker_id")[["runs_off_bat", "faced", "four", "six"]]
        .sum()
        .reindex(order, fill_value=0)
    )

    dismissals: Dict[str, dict] = {}
    for row in df[df["dismissed_player_id"] != ""].itertuples(index=False):
        dismissals[row.dismissed_player_id] = {
            "type": row.wicket_type,
            "bowler_id": row.wicket_bowler_id or None,
            "fielder_id": row.fielder_id or None,
            "sequence_index": int(row.sequence_index),
        }

    out: List[dict] = []
    for player_id, r in grouped.iterrows():
        runs = int(r["runs_off_bat"])
        faced = int(r["faced"])
        out.append({
            "player_id": player_id,
            "runs": runs,
            "balls": faced,
            "fours": int(r["four"]),
            "sixes": int(r["six"]),
            "strike_rate": strike_rate(runs, faced),
            "is_out": player_id in dismissals,
            "dismissal": dismissals.get(player_id),
        })
    return out


def bowling_card(
    overs: Sequence[Over],
    balls: Sequence[BallEvent],
    balls_per_over: int = DEFAULT_BALLS_PER_OVER,
) -> List[dict]:
    """
    One row per bowler in order of first over.
    Runs/wickets come from over records, wides/no-balls from the ledger.
    """
    if not overs:
        return []

    of = pd.DataFrame([
        {
            "bowler_id": o.bowler_id,
            "runs": o.runs,
            "wickets": o.wickets,
            "completed": int(o.is_completed),
            "maiden": int(o.is_completed and o.bowler_runs == 0),
            "open_balls": 0 if o.is_completed else o.legal_balls,
        }
        for o in overs
    ])
    order = pd.unique(of["bowler_id"])
    grouped = (
        of.groupby("bowler_id")[["runs", "wickets", "completed", "maiden", "open_balls"]]
        .sum()
        .reindex(order)
    )

    bf = ledger_frame(balls)
    if bf.empty:
        grouped["wides"] = 0
        grouped["no_balls"] = 0
    else:
        bf = bf.assign(
            wides=(bf["wide"] > 0).astype(int),
            no_balls=(bf["no_ball"] > 0).astype(int),
        )
        illegal = bf.groupby("bowler_id")[["wides", "no_balls"]].sum()
        grouped = grouped.join(illegal, how="left").fillna(0)

    out: List[dict] = []
    for bowler_id, r in grouped.iterrows():
        completed = int(r["completed"])
        open_balls = int(r["open_balls"])
        runs = int(r["runs"])
        legal = completed * balls_per_over + open_balls
        out.append({
            "player_id": bowler_id,
            "overs": format_overs(overs_notation(completed, open_balls)),
            "maidens": int(r["maiden"]),
            "runs": runs,
            "wickets": int(r["wickets"]),
            "economy": economy(runs, legal, balls_per_over),
            "wides": int(r["wides"]),
            "no_balls": int(r["no_balls"]),
        })
    return out
