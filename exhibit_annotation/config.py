"""
Configuration for annotation sessions, export and rendering.

Defaults come from ``default_config()``; ``EXHIBIT_*`` environment variables
override them (see ``utils.env.load_cfg_from_env``).
"""

import os
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from easydict import EasyDict as edict

from .utils.env import load_cfg_from_env


def default_config() -> edict:
    """Fresh configuration tree with the built-in defaults."""
    return edict(
        export=dict(
            table="exhibits",
            columns=["map_id", "name", "booth_no", "shape_type", "coordinates"],
            target_ids=[17, 18],
            format="sql",
        ),
        render=dict(
            anchor_radius=6,
            fill_alpha=0.2,
            stroke_width=2,
            colors=dict(
                rect=(255, 0, 0),
                circle=(0, 0, 255),
                poly=(0, 255, 0),
                preview=(0, 128, 0),
                temp_poly=(255, 165, 0),
                selected=(255, 255, 0),
            ),
        ),
    )


def load_config(env: Optional[Mapping[str, str]] = None) -> edict:
    """
    Build a configuration tree.

    Args:
        env: Environment mapping to read overrides from (defaults to os.environ)

    Returns:
        EasyDict with defaults merged with overrides
    """
    cfg = default_config()
    if env is None:
        env = os.environ
    load_cfg_from_env(cfg, dict(env))
    # Overrides arrive as strings
    cfg.export.target_ids = parse_target_ids(cfg.export.target_ids)
    cfg.export.columns = parse_list(cfg.export.columns)
    for name in list(cfg.render.colors):
        cfg.render.colors[name] = parse_color(cfg.render.colors[name])
    return cfg


def parse_target_ids(value: Union[str, int, List]) -> List[int]:
    """
    Normalize a destination id setting into a list of ints.

    Accepts a list, a single int or a comma separated string ("17,18").
    """
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
        return [int(part) for part in items if part]
    if isinstance(value, int):
        return [value]
    return [int(item) for item in value]


def parse_list(value: Union[str, Sequence[str]]) -> List[str]:
    """Split a comma separated string ('a,b') into a list of strings."""
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(item) for item in value]


def parse_color(value: Union[str, Sequence[int]]) -> Tuple[int, int, int]:
    """
    Normalize an RGB color setting.

    Accepts a sequence or a comma separated string ("255,0,0").

    Raises:
        ValueError: If the color does not have exactly three channels
    """
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    color = tuple(int(channel) for channel in value)
    if len(color) != 3:
        raise ValueError(f"Expected an RGB color, got {value!r}")
    return color
