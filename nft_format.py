"""
Text formatting for Reservoir NFT responses.

Turns loosely structured token and collection objects into the fixed,
human-readable line layout returned by the NFT tools. Optional lines are
driven by ordered (predicate, formatter) rules so that each field can be
checked on its own.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, List, Tuple

NATIVE_SYMBOL = "MON"

FALLBACKS = {
    "nft_name": "Unnamed NFT",
    "collection_name": "Unknown collection",
    "token_kind": "Unknown type",
    "currency": NATIVE_SYMBOL,
    "trending_name": "Unnamed Collection",
    "contract_kind": "Unknown",
    "mint_price": "Free",
    "marketplace": "Unknown marketplace",
    "date": "N/A",
}

TRENDING_TITLE = "\U0001f525 Trending NFT Collections on Monad Testnet \U0001f525"

Rule = Tuple[Callable[[dict], bool], Callable[[dict], List[str]]]


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def _dig(obj: Any, *keys: str) -> Any:
    """Follow nested keys, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _text(value: Any) -> str:
    """Render a JSON scalar the way it appeared on the wire."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _fixed2(value: Any) -> str:
    """Two decimals, ties rounded away from zero on the exact float value."""
    number = float(value or 0)
    if number == 0:
        return "0.00"
    return str(Decimal(number).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _format_date(value: Any) -> str:
    """Short US-style date (M/D/YYYY) in UTC."""
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        else:
            moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            if moment.tzinfo is not None:
                moment = moment.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        return "Invalid Date"
    return f"{moment.month}/{moment.day}/{moment.year}"


def _apply_rules(rules: List[Rule], record: dict) -> List[str]:
    lines: List[str] = []
    for applies, render in rules:
        if applies(record):
            lines.extend(render(record))
    return lines


def _currency(price: Any) -> str:
    return _dig(price, "currency", "symbol") or FALLBACKS["currency"]


# ---------------------------------------------------------------------------
# NFT portfolio
# ---------------------------------------------------------------------------


def _token_rarity(token: dict) -> List[str]:
    return [
        f"Rarity: Rank #{_text(token['rarityRank'])} "
        f"(Score: {_fixed2(token['rarityScore'])})"
    ]


def _token_floor(token: dict) -> List[str]:
    price = _dig(token, "collection", "floorAsk", "price")
    return [f"Collection Floor: {_text(_dig(price, 'amount', 'decimal'))} {_currency(price)}"]


TOKEN_RULES: List[Rule] = [
    (
        lambda t: bool(t.get("rarityScore") and t.get("rarityRank")),
        _token_rarity,
    ),
    (
        lambda t: bool(_dig(t, "collection", "floorAsk", "price", "amount", "decimal")),
        _token_floor,
    ),
    (lambda t: bool(t.get("image")), lambda t: [f"Image: {t['image']}"]),
]


def format_token(item: dict) -> str:
    """Format one owned-token entry ({"token": {...}, "ownership": {...}})."""
    token = item.get("token") or {}
    collection = token.get("collection") or {}

    lines = [
        f"- Name: {token.get('name') or FALLBACKS['nft_name']}",
        f"  Collection: {collection.get('name') or FALLBACKS['collection_name']}",
        f"  Token ID: {_text(token.get('tokenId'))}",
        f"  Contract: {_text(token.get('contract'))}",
        f"  Type: {token.get('kind') or FALLBACKS['token_kind']}",
    ]
    lines.extend(_apply_rules(TOKEN_RULES, token))
    return "\n".join(lines)


def format_portfolio(address: str, data: dict) -> str:
    tokens = data.get("tokens")
    if not isinstance(tokens, list):
        tokens = []

    records = "\n\n".join(format_token(item) for item in tokens)
    return f"NFT Portfolio for {address}:\n\nTotal NFTs: {len(tokens)}\n\n{records}"


# ---------------------------------------------------------------------------
# Trending collections
# ---------------------------------------------------------------------------


def _collection_stats(c: dict) -> List[str]:
    parts = []
    if c.get("tokenCount"):
        parts.append(f"{_text(c['tokenCount'])} tokens")
    if c.get("ownerCount"):
        parts.append(f"{_text(c['ownerCount'])} owners")
    return [f"Stats: {', '.join(parts)}"]


def _collection_mint(c: dict) -> List[str]:
    decimal = _dig(c, "mintPrice", "amount", "decimal")
    price = FALLBACKS["mint_price"] if decimal is None else _text(decimal)
    lines = [f"Mint: {_text(c['mintType'])} ({price} {_currency(c.get('mintPrice'))})"]
    if c.get("maxSupply"):
        lines.append(f"Max Supply: {_text(c['maxSupply'])}")
    return lines


def _collection_mint_counts(c: dict) -> List[str]:
    lines = [f"Total Mints: {_text(c['mintCount'])}"]
    if c.get("oneHourCount"):
        lines.append(f"Last Hour: {_text(c['oneHourCount'])} mints")
    if c.get("sixHourCount"):
        lines.append(f"Last 6 Hours: {_text(c['sixHourCount'])} mints")
    return lines


def _collection_volume_change(c: dict) -> List[str]:
    change = c["volumeChange"]
    lines = []
    for key, label in (("1day", "24h"), ("7day", "7d")):
        # null is reported as 0.00%; only a missing key is skipped.
        if key in change:
            lines.append(f"Volume Change ({label}): {_fixed2(float(change[key] or 0) * 100)}%")
    return lines


def _collection_volume(c: dict) -> List[str]:
    volume = c["collectionVolume"]
    return [
        f"Volume ({label}): {_fixed2(volume.get(key))} {NATIVE_SYMBOL}"
        for key, label in (
            ("1day", "24h"),
            ("7day", "7d"),
            ("30day", "30d"),
            ("allTime", "All Time"),
        )
    ]


def _collection_floor(c: dict) -> List[str]:
    price = _dig(c, "floorAsk", "price")
    marketplace = _dig(c, "floorAsk", "sourceDomain") or FALLBACKS["marketplace"]
    return [
        f"Floor Price: {_text(_dig(price, 'amount', 'decimal'))} {_currency(price)} "
        f"(on {marketplace})"
    ]


def _collection_stage(c: dict) -> List[str]:
    stage = c["mintStages"][0]
    if not isinstance(stage, dict):
        stage = {}
    lines = [f"Current Mint Stage: {_text(stage.get('stage'))} ({_text(stage.get('kind'))})"]
    if stage.get("maxMintsPerWallet"):
        lines.append(f"Max Mints Per Wallet: {_text(stage['maxMintsPerWallet'])}")
    return lines


def _collection_period(c: dict) -> List[str]:
    start = _format_date(c["startDate"]) if c.get("startDate") else FALLBACKS["date"]
    end = _format_date(c["endDate"]) if c.get("endDate") else FALLBACKS["date"]
    return [f"Mint Period: {start} to {end}"]


COLLECTION_RULES: List[Rule] = [
    (lambda c: bool(c.get("description")), lambda c: [f"Description: {c['description']}"]),
    (lambda c: bool(c.get("tokenCount") or c.get("ownerCount")), _collection_stats),
    (lambda c: bool(c.get("onSaleCount")), lambda c: [f"Items For Sale: {_text(c['onSaleCount'])}"]),
    (lambda c: bool(c.get("mintType")), _collection_mint),
    (lambda c: bool(c.get("mintCount")), _collection_mint_counts),
    (lambda c: isinstance(c.get("volumeChange"), dict), _collection_volume_change),
    (lambda c: isinstance(c.get("collectionVolume"), dict), _collection_volume),
    (lambda c: bool(_dig(c, "floorAsk", "price", "amount", "decimal")), _collection_floor),
    (
        lambda c: isinstance(c.get("mintStages"), list) and len(c["mintStages"]) > 0,
        _collection_stage,
    ),
    (lambda c: bool(c.get("startDate") or c.get("endDate")), _collection_period),
    (lambda c: bool(c.get("image")), lambda c: [f"Image: {c['image']}"]),
]


def format_collection(index: int, collection: dict) -> str:
    """Format one trending-mints entry; index is 1-based."""
    lines = [
        f"{index}. {collection.get('name') or FALLBACKS['trending_name']}",
        f"Contract: {_text(collection.get('id'))}",
        f"Type: {collection.get('contractKind') or FALLBACKS['contract_kind']}",
    ]
    lines.extend(_apply_rules(COLLECTION_RULES, collection))
    return "\n".join(lines)


def format_trending(data: dict) -> str:
    mints = data.get("mints")
    if not isinstance(mints, list):
        mints = []

    records = "\n\n".join(
        format_collection(index, collection) for index, collection in enumerate(mints, start=1)
    )
    return f"{TRENDING_TITLE}\n\nTotal Collections: {len(mints)}\n\n{records}"
