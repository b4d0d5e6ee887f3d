"""Discover crates by category from the crates.io database dump."""

from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable
from zoneinfo import ZoneInfo

from collectors.db_dump import CategoryRow, CrateCategoryRow, CrateRow, DbDump
from models import Crate, CrateLinks, ManualCrateInfo

# Timestamps without an offset are local times of the crates.io database
DUMP_TIMEZONE = ZoneInfo("Europe/London")

UNKNOWN = "unknown"


class SnapshotError(Exception):
    """Raised when the dump references a crate or category it does not contain."""


def dump_time_to_utc(value: datetime) -> datetime:
    """Interpret a naive dump timestamp in the dump timezone and convert to UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=DUMP_TIMEZONE)
    return value.astimezone(timezone.utc)


def crate_from_row(row: CrateRow, category_labels: list[str]) -> Crate:
    """Translate a dump row into the crates.io API crate shape.

    Fields the dump does not provide get explicit placeholders.
    """
    return Crate(
        id=str(row.id),
        name=row.name,
        description=row.description,
        license=None,
        documentation=row.documentation,
        homepage=row.homepage,
        repository=row.repository,
        downloads=row.downloads,
        recent_downloads=None,
        categories=list(category_labels),
        keywords=None,
        # TODO: collect version ids from the versions table
        versions=None,
        max_version=UNKNOWN,
        links=CrateLinks(
            owner_team=UNKNOWN,
            owner_user=UNKNOWN,
            owners=UNKNOWN,
            reverse_dependencies=UNKNOWN,
            version_downloads=UNKNOWN,
            versions=None,
        ),
        created_at=dump_time_to_utc(row.created_at),
        updated_at=dump_time_to_utc(row.updated_at),
        exact_match=None,
    )


class CategoryIndex:
    """Bidirectional category <-> crate index over one database dump."""

    def __init__(
        self,
        crates: dict[int, CrateRow],
        categories: dict[int, CategoryRow],
        crates_by_category: dict[int, list[int]],
        categories_by_crate: dict[int, list[int]],
    ):
        self.crates = crates
        self.categories = categories
        self.crates_by_category = crates_by_category
        self.categories_by_crate = categories_by_crate

    @classmethod
    def build(
        cls,
        crates: Iterable[CrateRow],
        categories: Iterable[CategoryRow],
        crates_categories: Iterable[CrateCategoryRow],
    ) -> "CategoryIndex":
        """Index the three dump tables, filling both maps in one pass over the links."""
        crates_by_category: dict[int, list[int]] = defaultdict(list)
        categories_by_crate: dict[int, list[int]] = defaultdict(list)

        for link in crates_categories:
            crates_by_category[link.category_id].append(link.crate_id)
            categories_by_crate[link.crate_id].append(link.category_id)

        return cls(
            crates={row.id: row for row in crates},
            categories={row.id: row for row in categories},
            crates_by_category=dict(crates_by_category),
            categories_by_crate=dict(categories_by_crate),
        )

    @classmethod
    def from_dump(cls, dump: DbDump) -> "CategoryIndex":
        return cls.build(dump.crates, dump.categories, dump.crates_categories)

    def _crate(self, crate_id: int) -> CrateRow:
        try:
            return self.crates[crate_id]
        except KeyError:
            raise SnapshotError(f"Crate {crate_id} is linked but missing from the dump") from None

    def _category(self, category_id: int) -> CategoryRow:
        try:
            return self.categories[category_id]
        except KeyError:
            raise SnapshotError(
                f"Category {category_id} is linked but missing from the dump"
            ) from None

    def crate_category_labels(self, crate_id: int) -> list[str]:
        """Return the labels of every category a crate belongs to."""
        return [
            self._category(category_id).description
            for category_id in self.categories_by_crate.get(crate_id, [])
        ]

    def discover(self, requested: Iterable[str]) -> list[tuple[CategoryRow, list[ManualCrateInfo]]]:
        """Synthesize manual input entries for every crate in the requested categories.

        Args:
            requested: Category labels as they appear in the dump's
                ``category`` column.

        Returns:
            (category, entries) pairs for each requested category that
            has crates.

        Raises:
            SnapshotError: If a link points to a crate or category that is
                not in the dump.
        """
        requested = set(requested)
        relevant = [c for c in self.categories.values() if c.category in requested]
        discovered = []

        for category in relevant:
            crate_ids = self.crates_by_category.get(category.id)
            if not crate_ids:
                continue

            entries = []
            for crate_id in crate_ids:
                row = self._crate(crate_id)
                labels = self.crate_category_labels(crate_id)
                entries.append(
                    ManualCrateInfo(
                        topics=labels,
                        krate=crate_from_row(row, labels),
                        score=None,
                        repo=None,
                    )
                )
            discovered.append((category, entries))

        return discovered
