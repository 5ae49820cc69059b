from __future__ import annotations

from pathlib import Path

import pandas as pd

from .models import ProviderProfile

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
_PROVIDERS_CSV = _DATA_DIR / "providers.csv"

_df: pd.DataFrame | None = None


def _load(path: Path = _PROVIDERS_CSV) -> pd.DataFrame:
    df = pd.read_csv(path, dtype={"id": str})

    # Pre-split the services column into lists
    df["services_list"] = (
        df["services"]
        .fillna("")
        .apply(lambda s: [x.strip() for x in s.split(";") if x.strip()])
    )

    # Lowercased name + description for case-insensitive search
    df["search_text"] = (
        df["name"].fillna("") + " " + df["description"].fillna("")
    ).str.lower()

    return df


def get_dataframe() -> pd.DataFrame:
    """Return the in-memory provider DataFrame, loading it on first call."""
    global _df
    if _df is None:
        _df = _load()
    return _df


def _to_profile(row: pd.Series) -> ProviderProfile:
    return ProviderProfile(
        id=str(row["id"]),
        name=row["name"],
        category=row["category"],
        description=row["description"] if pd.notna(row["description"]) else "",
        price=float(row["price"]),
        rating=float(row["rating"]) if pd.notna(row["rating"]) else None,
        reviews=int(row["reviews"]) if pd.notna(row["reviews"]) else 0,
        location=row["location"] if pd.notna(row["location"]) else "",
        distance=float(row["distance"]) if pd.notna(row["distance"]) else None,
        services=row["services_list"],
    )


def search_providers(search: str | None = None, category: str | None = None) -> list[ProviderProfile]:
    """Filter the catalog by free-text search and category, keeping catalog order."""
    df = get_dataframe()
    mask = pd.Series(True, index=df.index)

    if search and search.strip():
        mask = mask & df["search_text"].str.contains(search.strip().lower(), regex=False, na=False)

    if category and category != "all":
        mask = mask & (df["category"] == category)

    return [_to_profile(row) for _, row in df.loc[mask].iterrows()]


def get_provider(provider_id: str) -> ProviderProfile | None:
    df = get_dataframe()
    matches = df.loc[df["id"] == provider_id]
    if matches.empty:
        return None
    return _to_profile(matches.iloc[0])


def list_categories() -> list[str]:
    """``"all"`` followed by the distinct categories in catalog order."""
    return ["all", *get_dataframe()["category"].dropna().unique().tolist()]


def list_locations() -> list[str]:
    return sorted(get_dataframe()["location"].dropna().unique().tolist())
