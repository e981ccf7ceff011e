from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from proofrank import data


def test_proof_lookup() -> None:
    lookup = data.proof_lookup()

    assert list(lookup.columns) == ["id", "name"]
    assert len(lookup) == 15
    assert lookup.iloc[0].tolist() == [1, "Proof1"]
    assert lookup.iloc[-1].tolist() == [15, "Proof15"]


def test_normalize_filters_and_names_items(
    raw_judgements: pd.DataFrame, judgements: pd.DataFrame
) -> None:
    assert list(judgements.columns) == [
        "judge",
        "winner",
        "loser",
        "won_id",
        "lost_id",
        "study",
        "dimension",
        "no_tie",
    ]
    assert len(judgements) == len(raw_judgements) - 2
    assert set(judgements["dimension"]) == {"rigour"}
    assert (judgements["no_tie"] == 0).all()

    first = raw_judgements.iloc[0]
    assert judgements["winner"].iloc[0] == f"Proof{first['Won']}"
    assert judgements["loser"].iloc[0] == f"Proof{first['Lost']}"
    assert judgements["judge"].iloc[0] == first["JudgeID"]


def test_study_matches_numbers_and_text(raw_judgements: pd.DataFrame) -> None:
    as_int = data.normalize_judgements(raw_judgements, study=2)
    as_str = data.normalize_judgements(
        raw_judgements.astype({"study": str}), study="2"
    )

    assert as_int["winner"].tolist() == as_str["winner"].tolist()


def test_blank_study_cell_keeps_numeric_matches(tmp_path: Path) -> None:
    path = tmp_path / "judgements.csv"
    path.write_text(
        "study,dimension,Won,Lost,JudgeID\n"
        "2,rigour,1,2,J1\n"
        ",rigour,2,3,J1\n"
        "2,rigour,3,1,J2\n",
        encoding="utf-8",
    )
    frame = data.read_judgements(path)
    assert frame["study"].dtype == float

    out = data.normalize_judgements(frame, study=2)

    assert len(out) == 2
    assert out["winner"].tolist() == ["Proof1", "Proof3"]
    assert len(data.normalize_judgements(frame, study="2")) == 2


def test_unmatched_ids_leave_names_empty(caplog) -> None:
    frame = pd.DataFrame(
        {
            "study": [2, 2],
            "dimension": ["rigour", "rigour"],
            "Won": [1, 99],
            "Lost": [2, 3],
            "JudgeID": ["J1", "J2"],
        }
    )

    out = data.normalize_judgements(frame)

    assert out["winner"].iloc[0] == "Proof1"
    assert pd.isna(out["winner"].iloc[1])
    assert out["loser"].iloc[1] == "Proof3"
    assert "missing from the lookup" in caplog.text

    comps = data.comparisons_from_frame(out)
    assert comps.n_comparisons == 1
    assert "dropping 1 judgement" in caplog.text


def test_custom_lookup_mapping() -> None:
    frame = pd.DataFrame(
        {
            "study": ["s"],
            "dimension": ["clarity"],
            "Won": [10],
            "Lost": [20],
            "JudgeID": ["J1"],
        }
    )

    out = data.normalize_judgements(
        frame, study="s", dimension="clarity", lookup={10: "alpha", 20: "beta"}
    )

    assert out[["winner", "loser"]].iloc[0].tolist() == ["alpha", "beta"]


@pytest.mark.parametrize(
    ("lookup", "error", "match"),
    [
        ([("1", "a")], TypeError, "lookup must be a DataFrame or mapping"),
        (pd.DataFrame({"id": [1]}), ValueError, "lookup is missing columns"),
        (
            pd.DataFrame({"id": [1, 1], "name": ["a", "b"]}),
            ValueError,
            "lookup ids must be unique",
        ),
    ],
)
def test_lookup_validation(
    raw_judgements: pd.DataFrame, lookup, error: type, match: str
) -> None:
    with pytest.raises(error, match=match):
        data.normalize_judgements(raw_judgements, lookup=lookup)


def test_missing_columns_are_reported(raw_judgements: pd.DataFrame) -> None:
    with pytest.raises(ValueError, match=r"missing columns: \['JudgeID'\]"):
        data.normalize_judgements(raw_judgements.drop(columns="JudgeID"))

    with pytest.raises(ValueError, match="missing columns"):
        data.comparisons_from_frame(pd.DataFrame({"winner": ["A"]}))


def test_load_judgements_from_csv(raw_judgements: pd.DataFrame, tmp_path: Path) -> None:
    path = tmp_path / "judgements.csv"
    raw_judgements.to_csv(path, index=False)

    loaded = data.load_judgements(path, study=2, dimension="rigour")
    expected = data.normalize_judgements(raw_judgements)

    pd.testing.assert_frame_equal(loaded, expected)


def test_comparisons_from_frame(judgements: pd.DataFrame) -> None:
    comps = data.comparisons_from_frame(judgements)

    assert comps.items == tuple(f"Proof{i}" for i in range(1, 16))
    assert comps.n_comparisons == len(judgements)
    assert comps.winner_names() == judgements["winner"].tolist()
    assert len(comps.judges) == judgements["judge"].nunique()


def test_win_loss_table(proof_comparisons) -> None:
    table = data.win_loss_table(proof_comparisons)

    assert list(table.columns) == ["item", "wins", "losses", "n", "win_rate"]
    assert int(table["wins"].sum()) == proof_comparisons.n_comparisons
    assert int(table["losses"].sum()) == proof_comparisons.n_comparisons
    np.testing.assert_allclose(table["win_rate"], table["wins"] / table["n"])
