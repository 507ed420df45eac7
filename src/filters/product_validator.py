# src/filters/product_validator.py

"""Record validation: drop unusable payload records before normalisation."""

import logging
from typing import Any

from src.loaders.payload_normalizer import extract_id

logger = logging.getLogger("storefront.filters")


class ProductValidator:
    """Drop records that cannot become a catalog product."""

    @staticmethod
    def validate(
        records: list[Any],
    ) -> tuple[list[dict[str, Any]], int]:
        """Keep dict records carrying an identifier; drop duplicates by id.

        A record missing a name or price is still kept (the normaliser
        defaults those); only an absent identifier makes it unusable.

        Returns the valid records and the count of dropped items.
        """
        valid: list[dict[str, Any]] = []
        seen_ids: set[str] = set()
        dropped = 0

        for record in records:
            if not isinstance(record, dict):
                logger.debug(
                    "Dropped non-object catalog record (%s)",
                    type(record).__name__,
                )
                dropped += 1
                continue
            product_id = extract_id(record)
            if product_id is None:
                logger.debug(
                    "Dropped catalog record without id (name=%s)",
                    record.get("name"),
                )
                dropped += 1
                continue
            if product_id in seen_ids:
                logger.debug("Dropped duplicate catalog record id=%s", product_id)
                dropped += 1
                continue
            seen_ids.add(product_id)
            valid.append(record)

        if dropped:
            logger.info(
                "Validation dropped %d unusable catalog records",
                dropped,
            )

        return valid, dropped
