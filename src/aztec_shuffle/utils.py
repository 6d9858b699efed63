# src/aztec_shuffle/utils.py
from __future__ import annotations

import json
import os
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np


@dataclass
class TilingResult:
    """Common container for a single tiling snapshot."""

    order: int = 0
    cells: Optional[np.ndarray] = None
    grid: Optional[np.ndarray] = None
    meta: Optional[Dict[str, Any]] = None

    def ensure_meta(self) -> Dict[str, Any]:
        if self.meta is None:
            self.meta = {}
        return self.meta


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Independent generator for one simulation (no global numpy state)."""
    return np.random.default_rng(seed)


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def save_tiling_result(
    path: str | os.PathLike[str], result: TilingResult, *, overwrite: bool = True
) -> None:
    """Serialize a TilingResult to a compressed .npz file."""
    if not overwrite and Path(path).exists():
        raise FileExistsError(f"{path} already exists")
    out_dir = Path(path).parent
    out_dir.mkdir(parents=True, exist_ok=True)
    out: Dict[str, Any] = {"order": np.int64(result.order)}
    if result.cells is not None:
        out["cells"] = np.asarray(result.cells, dtype=np.int8)
    if result.grid is not None:
        out["grid"] = np.asarray(result.grid, dtype=np.int8)
    out["meta"] = dict(result.meta or {})
    np.savez_compressed(path, **out)


def load_tiling(path: str | os.PathLike[str]) -> TilingResult:
    """
    Load a tiling .npz into a TilingResult.
    """
    data = np.load(path, allow_pickle=True)
    cells = data["cells"].astype(np.int8) if "cells" in data else None
    grid = data["grid"].astype(np.int8) if "grid" in data else None
    meta: Dict[str, Any] = {}
    if "meta" in data:
        meta_raw = data["meta"]
        meta = meta_raw.item() if hasattr(meta_raw, "item") else dict(meta_raw)
    return TilingResult(order=int(data["order"]), cells=cells, grid=grid, meta=meta)


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load simulation parameters from JSON or TOML.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing parameter file: {path}")
    data = path.read_bytes()
    suffix = path.suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
