"""Import dialects and keyword tables.

Every lookup table is an ordered tuple: the first matching entry wins, so the
order in which rules are declared is part of their meaning.

A JSON file can override any field of the default dialect. Point the
environment variable BANKINSIGHT_CONFIG at it, or pass the path to
`load_config`::

    {
      "bank": "mybank",
      "delimiter": ",",
      "category_rules": [["groceries", ["lidl", "aldi"]], ...]
    }

Table-valued keys replace (not merge) the defaults.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, NamedTuple, Optional, Tuple

from bankinsight.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "BANKINSIGHT_CONFIG"


class CategoryRule(NamedTuple):
    category_id: str
    keywords: Tuple[str, ...]


class TagRule(NamedTuple):
    tag: str
    keywords: Tuple[str, ...]


class FrequencyRule(NamedTuple):
    label: str
    phrases: Tuple[str, ...]


# semantic field -> accepted header names, in preference order
RABOBANK_HEADER_SYNONYMS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("date", ("Datum", "Date")),
    ("description", ("Naam/Omschrijving", "Naam", "Omschrijving", "Description")),
    ("account_number", ("Rekening", "Account")),
    ("account_holder", ("Tegenrekening", "Counter account")),
    ("direction", ("Af/Bij", "Af", "Bij", "Debit/credit")),
    ("amount", ("Bedrag", "Bedrag (EUR)", "Amount")),
    ("mutation_kind", ("MutatieSoort", "Mutatie", "Mutation kind")),
    ("remarks", ("Mededelingen", "Mededeling", "Remarks")),
    ("balance_after", ("Saldo na mutatie", "Saldo", "Balance")),
)

RABOBANK_REQUIRED_HEADERS: Tuple[str, ...] = (
    "Datum",
    "Naam/Omschrijving",
    "Rekening",
    "Tegenrekening",
    "Code",
    "Af/Bij",
    "Bedrag",
    "MutatieSoort",
    "Mededelingen",
)

DEFAULT_CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule("supermarkt", ("albert heijn", "jumbo", "plus", "dirk", "c1000", "vomar", "dekamarkt", "ekoplaza")),
    CategoryRule("boodschappen", ("ah", "picnic", "gorillas", "flinck", "crisp")),
    CategoryRule("restaurant", ("restaurant", "cafe", "bar", "eetcafe", "lunch", "diner")),
    CategoryRule("fastfood", ("mcdonald", "bk", "burger king", "kfc", "subway", "dominos")),
    CategoryRule("woning", ("huur", "hypotheek", "energie", "gas", "elektra", "water", "vve")),
    CategoryRule("verzekering", ("verzekering", "inz", "cz", "menzis", "aegon", "nn")),
    CategoryRule("telecom", ("kpn", "vodafone", "t-mobile", "ziggo", "tele2")),
    CategoryRule("transport", ("ns", "ov", "trein", "bus", "tram", "metro", "benzine", "shell", "bp", "total")),
    CategoryRule("internet", ("ziggo", "kpn", "t-mobile", "online")),
    CategoryRule("salaris", ("salaris", "loon", "inkomen")),
    CategoryRule("belasting", ("belasting", "toeslag", "douane")),
    CategoryRule("entertainment", ("netflix", "spotify", "videoland", "bol.com", "amazon", "coolblue")),
    CategoryRule("sport", ("sportschool", "fitness", "gym", "basic-fit")),
    CategoryRule("kleding", ("h&m", "zara", "c&a", "we", "bijenkorf")),
    CategoryRule("gezondheid", ("apotheek", "huisarts", "ziekenhuis", "tandarts")),
    CategoryRule("onderwijs", ("school", "universiteit", "studie", "les", "cursus")),
)

DEFAULT_TAG_RULES: Tuple[TagRule, ...] = (
    TagRule("direct-debit", ("incasso", "sepa", "direct debit")),
    TagRule("instant-payment", ("ideal",)),
    TagRule("card-payment", ("pin", "betaalpas")),
    TagRule("online", ("online", "webshop")),
    TagRule("cash", ("cash", "geldautomaat", "atm")),
    TagRule("gift", ("gift", "cadeau")),
)

DEFAULT_RECURRING_KEYWORDS: Tuple[str, ...] = (
    "incasso",
    "direct debit",
    "periodiek",
    "periodic",
    "maandelijks",
    "monthly",
    "kwartaal",
    "quarterly",
    "jaarlijks",
    "yearly",
    "abonnement",
    "subscription",
    "verzekering",
    "insurance",
)

DEFAULT_FREQUENCY_RULES: Tuple[FrequencyRule, ...] = (
    FrequencyRule("monthly", ("maandelijks", "per maand", "monthly", "per month")),
    FrequencyRule("weekly", ("wekelijks", "per week", "weekly")),
    FrequencyRule("quarterly", ("kwartaal", "per kwartaal", "quarterly", "per quarter")),
    FrequencyRule("yearly", ("jaarlijks", "per jaar", "yearly", "annual", "per year")),
)


@dataclass(frozen=True)
class ImportConfig:
    bank: str = "rabobank"
    delimiter: str = ";"
    has_header: bool = True
    encoding: str = "utf-8"
    # semantic field -> column index, only consulted without a header row
    column_mapping: Tuple[Tuple[str, int], ...] = ()
    header_synonyms: Tuple[Tuple[str, Tuple[str, ...]], ...] = RABOBANK_HEADER_SYNONYMS
    required_headers: Tuple[str, ...] = RABOBANK_REQUIRED_HEADERS
    category_rules: Tuple[CategoryRule, ...] = DEFAULT_CATEGORY_RULES
    tag_rules: Tuple[TagRule, ...] = DEFAULT_TAG_RULES
    recurring_keywords: Tuple[str, ...] = DEFAULT_RECURRING_KEYWORDS
    frequency_rules: Tuple[FrequencyRule, ...] = DEFAULT_FREQUENCY_RULES
    noop_codes: Tuple[str, ...] = ("GT",)
    currency_symbols: Tuple[str, ...] = ("EUR", "€", "$", "£")
    auto_categorize: bool = True


DEFAULT_CONFIG = ImportConfig()

DIALECTS: Dict[str, ImportConfig] = {
    "rabobank": DEFAULT_CONFIG,
    # headerless export: date, description, amount, account, counter account,
    # direction, balance after
    "generic": ImportConfig(
        bank="generic",
        delimiter=",",
        has_header=False,
        column_mapping=(
            ("date", 0),
            ("description", 1),
            ("amount", 2),
            ("account_number", 3),
            ("account_holder", 4),
            ("direction", 5),
            ("balance_after", 6),
        ),
        required_headers=(),
    ),
}


def _pairs(value: Any, key: str) -> list:
    if isinstance(value, dict):
        value = list(value.items())
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list of pairs or an object")
    out = []
    for item in value:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise ConfigError(f"'{key}' entries must be [name, value] pairs, got {item!r}")
        out.append((str(item[0]), item[1]))
    return out


def _keywords(value: Any, key: str) -> Tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigError(f"'{key}' must be a list of strings")
    return tuple(str(v) for v in value)


def config_from_dict(data: Dict[str, Any], base: ImportConfig = DEFAULT_CONFIG) -> ImportConfig:
    """Build a config from plain JSON-style data layered over `base`."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    known = {f.name for f in fields(ImportConfig)}
    unknown = set(data) - known - {"dialect"}
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    if "dialect" in data:
        name = data["dialect"]
        if name not in DIALECTS:
            raise ConfigError(f"Unknown dialect '{name}'")
        base = DIALECTS[name]

    changes: Dict[str, Any] = {}
    for key, value in data.items():
        if key == "dialect":
            continue
        if key in ("bank", "delimiter", "encoding"):
            changes[key] = str(value)
        elif key in ("has_header", "auto_categorize"):
            changes[key] = bool(value)
        elif key == "column_mapping":
            changes[key] = tuple((name, int(idx)) for name, idx in _pairs(value, key))
        elif key == "header_synonyms":
            changes[key] = tuple((name, _keywords(v, key)) for name, v in _pairs(value, key))
        elif key == "category_rules":
            changes[key] = tuple(CategoryRule(name, _keywords(v, key)) for name, v in _pairs(value, key))
        elif key == "tag_rules":
            changes[key] = tuple(TagRule(name, _keywords(v, key)) for name, v in _pairs(value, key))
        elif key == "frequency_rules":
            changes[key] = tuple(FrequencyRule(name, _keywords(v, key)) for name, v in _pairs(value, key))
        else:
            changes[key] = _keywords(value, key)

    if len(changes.get("delimiter", base.delimiter)) != 1:
        raise ConfigError("'delimiter' must be a single character")
    return replace(base, **changes)


def load_config(path: str) -> ImportConfig:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot load configuration from {path}: {e}") from e
    config = config_from_dict(data)
    logger.info("Loaded import configuration for bank '%s' from %s", config.bank, path)
    return config


def config_from_env(default: Optional[ImportConfig] = None) -> ImportConfig:
    path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return default or DEFAULT_CONFIG
    return load_config(path)
