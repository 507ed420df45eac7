# src/storage/query_cache.py

"""In-memory TTL cache of catalog loads keyed by exact query signature."""

import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any

from src.config.settings import Settings
from src.models.product import Product, ProductImages
from src.models.query import DataSource, QuerySignature
from src.storage.client_storage import ClientStorage

logger = logging.getLogger("storefront.cache")

_PERSIST_PREFIX = "catalog_cache:"


@dataclass(frozen=True)
class CacheEntry:
    """A cached product list for one query signature."""

    signature: QuerySignature
    products: tuple[Product, ...]
    inserted_at: float
    source: DataSource = DataSource.LIVE

    def is_fresh(self, now: float, ttl: float) -> bool:
        """An entry is usable iff ``now - inserted_at < ttl``."""
        return now - self.inserted_at < ttl


# ── Persisted mirror encoding ────────────────────────────


def _signature_key(signature: QuerySignature) -> str:
    data = asdict(signature)
    data["categories"] = sorted(signature.categories)
    return _PERSIST_PREFIX + json.dumps(data, sort_keys=True)


def _encode_entry(entry: CacheEntry) -> str:
    return json.dumps({
        "inserted_at": entry.inserted_at,
        "source": entry.source.value,
        "products": [asdict(p) for p in entry.products],
    })


def _decode_product(data: dict[str, Any]) -> Product:
    images = data.pop("images")
    return Product(
        **{
            **data,
            "categories": tuple(data.get("categories", ())),
            "images": ProductImages(
                primary=images["primary"],
                gallery=tuple(images.get("gallery", ())),
            ),
        }
    )


def _decode_entry(signature: QuerySignature, raw: str) -> CacheEntry:
    data = json.loads(raw)
    return CacheEntry(
        signature=signature,
        products=tuple(_decode_product(dict(p)) for p in data["products"]),
        inserted_at=float(data["inserted_at"]),
        source=DataSource(data["source"]),
    )


class QueryCache:
    """Signature-keyed TTL cache with an explicit invalidation hook.

    Lookups are O(1) dict hits on the frozen signature.  A stale hit is
    evicted and reported as a miss; the caller is expected to reload
    and :meth:`put` the fresh list.  Two overlapping misses for one
    signature simply overwrite each other with equivalent results.

    The unfiltered "all products" entry is kept apart so the landing
    page can short-circuit, but it obeys the same TTL.

    When *storage* is given every put is mirrored there, so a restart
    within the TTL still hits.  Expired or undecodable mirror rows are
    swept on construction and on every put, so nothing outlives the TTL
    on disk for longer than one session.
    """

    def __init__(
        self,
        ttl: float | None = None,
        storage: ClientStorage | None = None,
    ) -> None:
        self._entries: dict[QuerySignature, CacheEntry] = {}
        self._all_entry: CacheEntry | None = None
        self._ttl: float = Settings.QUERY_CACHE_TTL if ttl is None else ttl
        self._storage = storage
        if storage is not None:
            self.evict_expired()

    @property
    def ttl(self) -> float:
        """Entry lifetime in seconds."""
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries) + (1 if self._all_entry else 0)

    # ── Lookup ───────────────────────────────────────────

    def get(self, signature: QuerySignature) -> CacheEntry | None:
        """Return the fresh entry for *signature*, or None on miss/stale."""
        if signature.is_unfiltered:
            return self.get_all()

        now = time.time()
        entry = self._entries.get(signature)
        if entry is None:
            entry = self._load_persisted(signature)
            if entry is None:
                return None
            self._entries[signature] = entry

        if not entry.is_fresh(now, self._ttl):
            logger.debug("Evicting stale cache entry for %s", signature)
            self._drop(signature)
            return None

        logger.debug(
            "Cache hit for %s (%d products)", signature, len(entry.products)
        )
        return entry

    def get_all(self) -> CacheEntry | None:
        """Return the fresh unfiltered landing entry, if any."""
        entry = self._all_entry
        if entry is None:
            entry = self._load_persisted(QuerySignature())
            self._all_entry = entry
        if entry is None:
            return None
        if not entry.is_fresh(time.time(), self._ttl):
            logger.debug("Evicting stale all-products entry")
            self._all_entry = None
            self._forget_persisted(QuerySignature())
            return None
        return entry

    # ── Store ────────────────────────────────────────────

    def put(
        self,
        signature: QuerySignature,
        products: list[Product],
        source: DataSource = DataSource.LIVE,
    ) -> CacheEntry:
        """Store *products* under *signature*, replacing any prior entry."""
        entry = CacheEntry(
            signature=signature,
            products=tuple(products),
            inserted_at=time.time(),
            source=source,
        )
        if signature.is_unfiltered:
            self._all_entry = entry
        else:
            self._entries[signature] = entry
        self.evict_expired()
        self._persist(entry)
        logger.info(
            "Cached %d products for %s (source=%s)",
            len(products),
            "all products" if signature.is_unfiltered else signature,
            source.value,
        )
        return entry

    def put_all(
        self,
        products: list[Product],
        source: DataSource = DataSource.LIVE,
    ) -> CacheEntry:
        """Store the unfiltered landing entry."""
        return self.put(QuerySignature(), products, source)

    # ── Invalidation ─────────────────────────────────────

    def invalidate_all(self) -> int:
        """Purge every entry, including the landing entry and mirror.

        Returns the number of in-memory entries that were removed.
        """
        count = len(self)
        self._entries.clear()
        self._all_entry = None
        if self._storage is not None:
            self._storage.remove_prefix(_PERSIST_PREFIX)
        logger.info("Cache invalidated (%d entries removed)", count)
        return count

    def evict_expired(self) -> int:
        """Remove entries older than the TTL threshold; return the count."""
        now = time.time()
        stale = [
            sig
            for sig, entry in self._entries.items()
            if not entry.is_fresh(now, self._ttl)
        ]
        for sig in stale:
            self._drop(sig)
        if self._all_entry and not self._all_entry.is_fresh(now, self._ttl):
            self._all_entry = None
            self._forget_persisted(QuerySignature())
            stale.append(QuerySignature())
        removed = len(stale) + self._sweep_mirror(now)
        if removed:
            logger.debug("Evicted %d expired cache entries", removed)
        return removed

    # ── Persisted mirror ─────────────────────────────────

    def _drop(self, signature: QuerySignature) -> None:
        self._entries.pop(signature, None)
        self._forget_persisted(signature)

    def _persist(self, entry: CacheEntry) -> None:
        if self._storage is None:
            return
        self._storage.set_item(
            _signature_key(entry.signature), _encode_entry(entry)
        )

    def _sweep_mirror(self, now: float) -> int:
        """Drop mirror rows that are stale or unreadable; return the count."""
        if self._storage is None:
            return 0
        swept = 0
        for key in self._storage.keys(_PERSIST_PREFIX):
            raw = self._storage.get_item(key)
            try:
                inserted_at = float(json.loads(raw or "")["inserted_at"])
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Dropping corrupt cache entry %s: %s", key, exc)
                inserted_at = None
            if inserted_at is None or now - inserted_at >= self._ttl:
                self._storage.remove_item(key)
                swept += 1
        return swept

    def _forget_persisted(self, signature: QuerySignature) -> None:
        if self._storage is not None:
            self._storage.remove_item(_signature_key(signature))

    def _load_persisted(self, signature: QuerySignature) -> CacheEntry | None:
        if self._storage is None:
            return None
        key = _signature_key(signature)
        raw = self._storage.get_item(key)
        if raw is None:
            return None
        try:
            return _decode_entry(signature, raw)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning(
                "Dropping corrupt cache entry for %s: %s", signature, exc
            )
            self._storage.remove_item(key)
            return None
