"""Local JSON file store — fallback when Redis is unreachable."""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from freight.schemas.rule import PricingRule, pricing_rule_adapter

logger = structlog.get_logger()


class LocalRuleStore:
    """Keeps all rules as one JSON array in a file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[PricingRule]:
        """Read all rules. A missing or unreadable file reads as empty."""
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("local_rule_file_unreadable", path=str(self.path), error=str(e))
            return []

        if not isinstance(raw, list):
            logger.warning("local_rule_file_unreadable", path=str(self.path), error="not a list")
            return []

        rules = []
        for item in raw:
            try:
                rules.append(pricing_rule_adapter.validate_python(item))
            except ValidationError as e:
                logger.warning("stored_rule_invalid", source="local", error=str(e))
        return rules

    def save(self, rules: list[PricingRule]) -> None:
        """Overwrite the file with ``rules``."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = [pricing_rule_adapter.dump_python(r, mode="json") for r in rules]
        self.path.write_text(
            json.dumps(data, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
