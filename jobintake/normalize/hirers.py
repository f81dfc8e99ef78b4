from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class FrequentHirer:
    slug: str
    name: str
    patterns: tuple[str, ...]


# Order matters: the first employer whose pattern matches wins.
FREQUENT_HIRERS: tuple[FrequentHirer, ...] = (
    FrequentHirer("walmart", "Walmart / Sam's Club", ("walmart", "sam's club", "sams club")),
    FrequentHirer("amazon", "Amazon", ("amazon", "aws", "whole foods")),
    FrequentHirer("target", "Target", ("target",)),
    FrequentHirer("fedex", "FedEx", ("fedex", "federal express")),
    FrequentHirer("ups", "UPS", ("ups", "united parcel")),
    FrequentHirer("foster_farms", "Foster Farms", ("foster farms",)),
    FrequentHirer("pridestaff", "PrideStaff", ("pridestaff",)),
    FrequentHirer("randstad", "Randstad", ("randstad",)),
    FrequentHirer("adecco", "Adecco", ("adecco",)),
    FrequentHirer("home_depot", "Home Depot", ("home depot", "homedepot", "the home depot")),
    FrequentHirer("lowes", "Lowe's", ("lowe's", "lowes", "lowe")),
    FrequentHirer("starbucks", "Starbucks", ("starbucks", "starbucks coffee")),
    FrequentHirer("mcdonalds", "McDonald's", ("mcdonald's", "mcdonalds", "mcd")),
    FrequentHirer("kroger", "Kroger / Food 4 Less", ("kroger", "food 4 less", "food4less", "ralphs", "fred meyer")),
    FrequentHirer("goodwill", "Goodwill Industries", ("goodwill", "goodwill industries")),
    FrequentHirer("taco_bell", "Taco Bell", ("taco bell", "tacobell")),
    FrequentHirer("burger_king", "Burger King", ("burger king", "burgerking", "bk")),
)


class FrequentHirerTable:
    def __init__(self, hirers: tuple[FrequentHirer, ...] | list[FrequentHirer] = FREQUENT_HIRERS) -> None:
        self.hirers = tuple(hirers)

    @classmethod
    def from_config(cls, entries: list[dict[str, Any]] | None) -> "FrequentHirerTable":
        if not entries:
            return cls()
        hirers = [
            FrequentHirer(
                slug=entry["slug"],
                name=entry.get("name", entry["slug"]),
                patterns=tuple(p.lower() for p in entry.get("patterns", [])),
            )
            for entry in entries
        ]
        return cls(hirers)

    def match(self, *texts: str | None) -> str | None:
        search_text = " ".join(t for t in texts if t).lower()
        if not search_text:
            return None
        for hirer in self.hirers:
            if any(pattern in search_text for pattern in hirer.patterns):
                return hirer.slug
        return None

    def get(self, slug: str) -> FrequentHirer | None:
        return next((h for h in self.hirers if h.slug == slug), None)
