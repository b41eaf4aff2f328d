# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Internal pandas helpers"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import pandas as pd


def strip_odata_keys(record: Dict[str, Any]) -> Dict[str, Any]:
    """Remove OData metadata keys (keys containing '@') from a record dict."""
    return {k: v for k, v in record.items() if "@" not in k}


def _as_record(item: Any) -> Dict[str, Any]:
    if isinstance(item, dict):
        return strip_odata_keys(item)
    to_dict = getattr(item, "to_dict", None)
    if callable(to_dict):
        return strip_odata_keys(to_dict())
    return {"value": item}


def items_to_dataframe(items: Iterable[Any], columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Materialize listing items into a DataFrame, one row per item.

    Consumes ``items`` to exhaustion, so every remaining page is fetched.

    :param items: Items from ``client.listings.list`` or any iterable of dicts / resource models.
    :param columns: Optional column subset and order.
    """
    records = [_as_record(item) for item in items]
    if columns is not None:
        return pd.DataFrame.from_records(records, columns=columns)
    return pd.DataFrame.from_records(records)
