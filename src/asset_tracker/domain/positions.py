"""In-memory position aggregate keyed by asset symbol."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from asset_tracker.domain.assets import Asset


@dataclass(frozen=True)
class Position:
    """Immutable set of assets, unique per symbol.

    ``with_asset`` returns a new Position; the receiver and every other
    asset entry are left untouched.
    """

    assets: Mapping[str, Asset] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "assets", MappingProxyType(dict(self.assets)))

    @classmethod
    def new(cls) -> "Position":
        return cls()

    def with_asset(self, asset: Asset) -> "Position":
        assets = dict(self.assets)
        assets[asset.symbol] = asset
        return Position(assets)

    def get(self, symbol: str) -> Asset | None:
        return self.assets.get(symbol)

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(self.assets)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self.assets

    def __iter__(self) -> Iterator[Asset]:
        return iter(self.assets.values())

    def __len__(self) -> int:
        return len(self.assets)
