# backend/modules/kds/services/station_routing_service.py

"""
Station routing for the Kitchen Display System.

Items are routed by keyword: an item belongs to a station when any of the
station's keywords is a substring of the lower-cased product name or
category name. One item may belong to several stations, or to none
("unrouted", only visible in the all-stations view).
"""

from typing import Dict, FrozenSet, List, Optional, Sequence

from core.config import Settings, get_settings
from core.exceptions import ValidationError


class StationClassifier:
    """Keyword-based mapping of order items to kitchen stations"""

    def __init__(self, station_keywords: Dict[str, Sequence[str]]):
        # Dict order is station priority for single-station assignment
        self.station_keywords: Dict[str, List[str]] = {
            station_id.lower(): [keyword.lower() for keyword in keywords]
            for station_id, keywords in station_keywords.items()
        }

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "StationClassifier":
        settings = settings or get_settings()
        return cls(settings.kds_station_keywords)

    @property
    def station_ids(self) -> List[str]:
        return list(self.station_keywords.keys())

    def validate_station(self, station_id: Optional[str]) -> str:
        """Normalize a caller supplied station id or raise ValidationError"""
        normalized = (station_id or "").strip().lower()
        if normalized not in self.station_keywords:
            raise ValidationError(
                f"Unknown station '{station_id}'. "
                f"Valid stations: {', '.join(self.station_ids)}",
                error_code="UNKNOWN_STATION",
            )
        return normalized

    def classify(
        self, product_name: Optional[str], category_name: Optional[str]
    ) -> FrozenSet[str]:
        product = (product_name or "").lower()
        category = (category_name or "").lower()

        return frozenset(
            station_id
            for station_id, keywords in self.station_keywords.items()
            if any(keyword in product or keyword in category for keyword in keywords)
        )

    def belongs_to(
        self,
        product_name: Optional[str],
        category_name: Optional[str],
        station_id: str,
    ) -> bool:
        return self.validate_station(station_id) in self.classify(
            product_name, category_name
        )

    def primary_station(
        self, product_name: Optional[str], category_name: Optional[str]
    ) -> Optional[str]:
        """First matching station in configured priority order"""
        matches = self.classify(product_name, category_name)
        for station_id in self.station_keywords:
            if station_id in matches:
                return station_id
        return None

    def order_stations(self, stations: FrozenSet[str]) -> List[str]:
        """Station set as a list in configured priority order"""
        return [station_id for station_id in self.station_keywords if station_id in stations]
