"""Presidential election results: reshape, clean and join census tables.

The results workbook has one row per commune: a block of identifier
columns followed by the same seven candidate columns repeated once per
candidate.  :func:`reshape_candidates` stacks those blocks into one row per
(commune, candidate).  The census helpers read INSEE spreadsheets and
derive shares (percentages), and :func:`join_reference` attaches them to
the results by commune code (``CODGEO``).
"""

from __future__ import annotations

import logging
import re
import unicodedata
from pathlib import Path
from typing import Iterable, List, Sequence

import numpy as np
import pandas as pd

from coursework.errors import MissingColumnsError

logger = logging.getLogger(__name__)

RESULTS_URL = "https://www.data.gouv.fr/fr/datasets/r/6d9b33e5-667d-4c3e-9a0b-5fdf5baac708"

CANDIDATE_FIELDS = (
    "n_panneau",
    "sexe",
    "nom",
    "prenom",
    "voix",
    "percent_voix_ins",
    "percent_voix_exp",
)
ID_COLUMNS = 19


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def clean_name(name: object) -> str:
    """snake_case ASCII version of a column header (``"% Voix/Ins"`` -> ``"percent_voix_ins"``)."""
    s = str(name).replace("%", " percent ")
    s = unicodedata.normalize("NFKD", s).encode("ascii", "ignore").decode("ascii")
    s = re.sub(r"[^0-9a-zA-Z]+", "_", s).strip("_").lower()
    return s or "x"


def clean_names(frame: pd.DataFrame) -> pd.DataFrame:
    """Return *frame* with :func:`clean_name` headers, de-duplicated with ``_2``, ``_3`` ..."""
    seen: dict[str, int] = {}
    columns: List[str] = []
    for col in frame.columns:
        base = clean_name(col)
        seen[base] = seen.get(base, 0) + 1
        columns.append(base if seen[base] == 1 else f"{base}_{seen[base]}")
    out = frame.copy()
    out.columns = columns
    return out


def _require(frame: pd.DataFrame, columns: Iterable[str], context: str) -> None:
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise MissingColumnsError(missing, context)


def _to_number(series: pd.Series) -> pd.Series:
    """Numeric view of a text column; decimal commas accepted, junk becomes NaN."""
    text = series.astype("string").str.strip().str.replace(",", ".", regex=False)
    return pd.to_numeric(text, errors="coerce").astype("float64")


def _share(part: pd.Series, whole: pd.Series) -> pd.Series:
    return part / whole.replace(0, np.nan) * 100


# ---------------------------------------------------------------------------
# Results workbook
# ---------------------------------------------------------------------------

def reshape_candidates(
    frame: pd.DataFrame,
    id_columns: int = ID_COLUMNS,
    block: Sequence[str] = CANDIDATE_FIELDS,
) -> pd.DataFrame:
    """Stack repeated candidate column blocks into long format.

    Headers are cleaned and every value is kept as text.  Each output row
    carries the *id_columns* leading identifier columns, a 1-based
    ``candidate_slot`` and the fields named in *block*.  Blocks that are
    entirely empty (a commune with fewer candidates) are dropped.

    Raises:
        MissingColumnsError: If the trailing candidate block is incomplete.
    """
    cleaned = clean_names(frame).astype("string")
    ids = list(cleaned.columns[:id_columns])
    candidate_cols = list(cleaned.columns[id_columns:])

    width = len(block)
    remainder = len(candidate_cols) % width
    if remainder:
        raise MissingColumnsError(list(block[remainder:]), "last candidate block")

    pieces = []
    for slot, start in enumerate(range(0, len(candidate_cols), width), start=1):
        cols = candidate_cols[start:start + width]
        piece = cleaned[ids + cols].copy()
        piece.columns = ids + list(block)
        piece.insert(len(ids), "candidate_slot", slot)
        piece["_row"] = np.arange(len(piece))
        pieces.append(piece)

    if not pieces:
        return pd.DataFrame(columns=ids + ["candidate_slot"] + list(block))

    long = pd.concat(pieces, ignore_index=True)
    long = long.dropna(subset=list(block), how="all")
    long = long.sort_values(["_row", "candidate_slot"], kind="stable").drop(columns="_row")
    return long.reset_index(drop=True)


def pad_geo_codes(
    frame: pd.DataFrame,
    department_col: str = "code_du_departement",
    commune_col: str = "code_de_la_commune",
) -> pd.DataFrame:
    """Zero-pad department (2) and commune (3) codes and build ``CODGEO``."""
    _require(frame, [department_col, commune_col], "results table")
    out = frame.copy()
    out[department_col] = out[department_col].astype("string").str.strip().str.zfill(2)
    out[commune_col] = out[commune_col].astype("string").str.strip().str.zfill(3)
    out["CODGEO"] = out[department_col] + out[commune_col]
    return out


def read_results(source: Path | str = RESULTS_URL) -> pd.DataFrame:
    """Read the results workbook as text, from a path or URL."""
    logger.info("reading election results from %s", source)
    return pd.read_excel(source, dtype=str)


# ---------------------------------------------------------------------------
# Census tables
# ---------------------------------------------------------------------------

def prepare_population(raw: pd.DataFrame) -> pd.DataFrame:
    cols = ["CODGEO", "REG", "DEP", "LIBGEO", "P19_POP", "C19_POP15P", "C19_POP15P_CS1", "C19_POP15P_CS6"]
    _require(raw, cols, "population table")
    pop = raw[cols].rename(
        columns={
            "P19_POP": "population_nb",
            "C19_POP15P": "population15_nb",
            "C19_POP15P_CS1": "agri15_nb",
            "C19_POP15P_CS6": "ouv15_nb",
        }
    )
    for col in ("population_nb", "population15_nb", "agri15_nb", "ouv15_nb"):
        pop[col] = _to_number(pop[col])
    pop["agri_share"] = _share(pop["agri15_nb"], pop["population15_nb"])
    pop["ouvri_share"] = _share(pop["ouv15_nb"], pop["population15_nb"])
    return pop


def prepare_unemployment(raw: pd.DataFrame) -> pd.DataFrame:
    cols = ["CODGEO", "LIBGEO", "P19_POP1564", "P19_CHOMEUR1564"]
    _require(raw, cols, "employment table")
    unemp = raw[cols].rename(
        columns={"P19_POP1564": "pop1564", "P19_CHOMEUR1564": "unemp1564_nb"}
    )
    unemp["pop1564"] = _to_number(unemp["pop1564"])
    unemp["unemp1564_nb"] = _to_number(unemp["unemp1564_nb"])
    unemp["unemp_share"] = _share(unemp["unemp1564_nb"], unemp["pop1564"])
    return unemp


def prepare_immigration(raw: pd.DataFrame) -> pd.DataFrame:
    """Immigrant head count and share per commune.

    Every column containing ``IMMI1`` counts immigrants, every column
    containing ``IMMI2`` counts non-immigrants (the table crosses them with
    age and sex).
    """
    _require(raw, ["CODGEO", "LIBGEO"], "immigration table")
    value_cols = [c for c in raw.columns if "IMMI" in str(c)]
    if not value_cols:
        raise MissingColumnsError(["IMMI*"], "immigration table")

    long = raw.melt(id_vars=["CODGEO", "LIBGEO"], value_vars=value_cols, var_name="name")
    names = long["name"].astype(str)
    long["status"] = None
    long.loc[names.str.contains("IMMI2"), "status"] = "non_immigrant"
    long.loc[names.str.contains("IMMI1"), "status"] = "immigrant"
    long["value"] = _to_number(long["value"])

    totals = (
        long.dropna(subset=["status"])
        .groupby(["CODGEO", "LIBGEO", "status"], as_index=False)["value"]
        .sum()
        .rename(columns={"value": "immig_nb"})
    )
    commune_total = totals.groupby(["CODGEO", "LIBGEO"])["immig_nb"].transform("sum")
    totals["immig_share"] = _share(totals["immig_nb"], commune_total)
    immig = totals.loc[totals["status"] == "immigrant"].drop(columns="status")
    return immig.reset_index(drop=True)


def load_population(path: Path | str) -> pd.DataFrame:
    return prepare_population(pd.read_excel(path, skiprows=5, dtype={"CODGEO": str}))


def load_unemployment(path: Path | str) -> pd.DataFrame:
    return prepare_unemployment(pd.read_excel(path, skiprows=5, dtype={"CODGEO": str}))


def load_immigration(path: Path | str) -> pd.DataFrame:
    return prepare_immigration(pd.read_excel(path, skiprows=9, dtype={"CODGEO": str}))


# ---------------------------------------------------------------------------
# Join and final selection
# ---------------------------------------------------------------------------

def join_reference(
    results: pd.DataFrame,
    population: pd.DataFrame,
    immigration: pd.DataFrame,
    unemployment: pd.DataFrame,
) -> pd.DataFrame:
    """Left-join census tables onto the results by ``CODGEO``.

    Communes absent from the census keep their rows with missing shares.
    """
    _require(results, ["CODGEO", "percent_voix_exp"], "results table")
    keys = ["CODGEO", "LIBGEO"]
    census = (
        population.merge(immigration, on=keys, how="left")
        .merge(unemployment, on=keys, how="left")
    )
    joined = results.merge(census, on="CODGEO", how="left")
    joined["vote_share"] = _to_number(joined["percent_voix_exp"])
    joined["ouvri_share"] = _to_number(joined["ouvri_share"])
    unmatched = int(joined["LIBGEO"].isna().sum())
    if unmatched:
        logger.warning("%d result row(s) have no census match", unmatched)
    return joined


def normalize_candidate(name: object) -> object:
    """``"LE PEN"`` -> ``"le_pen"``, ``"MÉLENCHON"`` -> ``"melenchon"``.

    Missing names are returned unchanged.
    """
    if pd.isna(name):
        return name
    s = str(name).lower().replace("é", "e")
    return re.sub(r"[ -]", "_", s)


def select_analysis_columns(frame: pd.DataFrame) -> pd.DataFrame:
    cols = [
        "code_du_departement",
        "libelle_du_departement",
        "libelle_de_la_commune",
        "percent_exp_ins",
        "nom",
        "vote_share",
    ]
    _require(frame, cols, "joined table")
    share_cols = [c for c in frame.columns if "share" in c and c != "vote_share"]
    out = frame[cols + share_cols].rename(
        columns={
            "nom": "candidate",
            "libelle_du_departement": "departement",
            "code_du_departement": "departement_code",
            "libelle_de_la_commune": "commune",
            "percent_exp_ins": "turnout",
        }
    )
    out["candidate"] = out["candidate"].map(normalize_candidate)
    return out


def build_election_table(
    results: pd.DataFrame,
    population: pd.DataFrame,
    immigration: pd.DataFrame,
    unemployment: pd.DataFrame,
) -> pd.DataFrame:
    """Raw results workbook + census tables -> one analysis row per commune and candidate."""
    long = pad_geo_codes(reshape_candidates(results))
    joined = join_reference(long, population, immigration, unemployment)
    table = select_analysis_columns(joined)
    logger.info(
        "election table: %d row(s), %d candidate(s)",
        len(table),
        table["candidate"].nunique(),
    )
    return table


def write_election_csv(table: pd.DataFrame, path: Path | str) -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(out_path, index=False)
    return out_path
