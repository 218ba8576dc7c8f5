"""BS.1770 channel roles and energy weights."""
from __future__ import annotations

from enum import Enum
from typing import Iterable

import numpy as np


class ChannelRole(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"
    LEFT_SURROUND = "left_surround"
    RIGHT_SURROUND = "right_surround"
    LFE = "lfe"
    UNUSED = "unused"
    DUAL_MONO = "dual_mono"


CHANNEL_WEIGHTS: dict[ChannelRole, float] = {
    ChannelRole.LEFT: 1.0,
    ChannelRole.RIGHT: 1.0,
    ChannelRole.CENTER: 1.0,
    ChannelRole.LEFT_SURROUND: 1.41,
    ChannelRole.RIGHT_SURROUND: 1.41,
    ChannelRole.LFE: 0.0,
    ChannelRole.UNUSED: 0.0,
    # A mono signal meant for playback on two speakers counts twice.
    ChannelRole.DUAL_MONO: 2.0,
}


def parse_channel_role(role: ChannelRole | str) -> ChannelRole:
    """Coerce a role name (case-insensitive) to a ChannelRole."""
    if isinstance(role, ChannelRole):
        return role
    try:
        return ChannelRole(str(role).strip().lower())
    except ValueError:
        valid = ", ".join(r.value for r in ChannelRole)
        raise ValueError(f"Unknown channel role {role!r} (expected one of: {valid}).") from None


def channel_weight(role: ChannelRole | str) -> float:
    """Return the BS.1770 energy weight for a channel role."""
    return CHANNEL_WEIGHTS[parse_channel_role(role)]


def default_channel_roles(channels: int) -> tuple[ChannelRole, ...]:
    """
    Return the default role map for a channel count.

    4 channels are read as quad (L, R, Ls, Rs), 5 as L, R, C, Ls, Rs and
    6 or more as the SMPTE 5.1 order L, R, C, LFE, Ls, Rs with any further
    channels left unused.
    """
    if channels < 1:
        raise ValueError("channels must be >= 1.")
    if channels == 4:
        return (
            ChannelRole.LEFT,
            ChannelRole.RIGHT,
            ChannelRole.LEFT_SURROUND,
            ChannelRole.RIGHT_SURROUND,
        )
    if channels == 5:
        return (
            ChannelRole.LEFT,
            ChannelRole.RIGHT,
            ChannelRole.CENTER,
            ChannelRole.LEFT_SURROUND,
            ChannelRole.RIGHT_SURROUND,
        )
    order = (
        ChannelRole.LEFT,
        ChannelRole.RIGHT,
        ChannelRole.CENTER,
        ChannelRole.LFE,
        ChannelRole.LEFT_SURROUND,
        ChannelRole.RIGHT_SURROUND,
    )
    roles = list(order[:channels])
    roles.extend(ChannelRole.UNUSED for _ in range(channels - len(roles)))
    return tuple(roles)


def channel_weights(roles: Iterable[ChannelRole | str]) -> np.ndarray:
    """Map a role sequence to a float64 weight vector."""
    return np.array([channel_weight(r) for r in roles], dtype=np.float64)
