"""Billing regions — the closed set of destination zones."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Region(str, Enum):
    """Provincial-level billing zones.

    Declaration order is the display order used by exports and the API.
    """

    BJ = "BJ"
    TJ = "TJ"
    HE = "HE"
    SX = "SX"
    NM = "NM"
    LN = "LN"
    JL = "JL"
    HL = "HL"
    SH = "SH"
    JS = "JS"
    ZJ = "ZJ"
    AH = "AH"
    FJ = "FJ"
    JX = "JX"
    SD = "SD"
    HA = "HA"
    HB = "HB"
    HN = "HN"
    GD = "GD"
    GX = "GX"
    HI = "HI"
    CQ = "CQ"
    SC = "SC"
    GZ = "GZ"
    YN = "YN"
    XZ = "XZ"
    SN = "SN"
    GS = "GS"
    QH = "QH"
    NX = "NX"
    XJ = "XJ"


REGION_NAMES: dict[Region, str] = {
    Region.BJ: "北京",
    Region.TJ: "天津",
    Region.HE: "河北",
    Region.SX: "山西",
    Region.NM: "内蒙古",
    Region.LN: "辽宁",
    Region.JL: "吉林",
    Region.HL: "黑龙江",
    Region.SH: "上海",
    Region.JS: "江苏",
    Region.ZJ: "浙江",
    Region.AH: "安徽",
    Region.FJ: "福建",
    Region.JX: "江西",
    Region.SD: "山东",
    Region.HA: "河南",
    Region.HB: "湖北",
    Region.HN: "湖南",
    Region.GD: "广东",
    Region.GX: "广西",
    Region.HI: "海南",
    Region.CQ: "重庆",
    Region.SC: "四川",
    Region.GZ: "贵州",
    Region.YN: "云南",
    Region.XZ: "西藏",
    Region.SN: "陕西",
    Region.GS: "甘肃",
    Region.QH: "青海",
    Region.NX: "宁夏",
    Region.XJ: "新疆",
}

_NAME_TO_REGION = {name: region for region, name in REGION_NAMES.items()}

# Stripped one after another, in this order
_ADMIN_SUFFIXES = ("省", "市", "自治区", "壮族", "回族", "维吾尔")


def lookup_region(code: str) -> Optional[Region]:
    """Exact code lookup, None for anything outside the enumeration."""
    try:
        return Region(code)
    except ValueError:
        return None


def normalize_region(raw: Optional[str]) -> Optional[Region]:
    """Map a spreadsheet cell to a Region.

    Accepts a region code (any case) or a Chinese province name, with or
    without administrative suffixes ("广东省", "广西壮族自治区"). Falls back
    to substring matching in either direction.

    Returns:
        The matching Region, or None if nothing matches
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None

    region = lookup_region(text.upper())
    if region is not None:
        return region

    if text in _NAME_TO_REGION:
        return _NAME_TO_REGION[text]

    cleaned = text
    for suffix in _ADMIN_SUFFIXES:
        if cleaned.endswith(suffix):
            cleaned = cleaned[: -len(suffix)]
    if cleaned in _NAME_TO_REGION:
        return _NAME_TO_REGION[cleaned]
    if not cleaned:
        return None

    for region, name in REGION_NAMES.items():
        if cleaned in name or name in cleaned:
            return region

    return None
