"""
Dataset catalogue and per-dataset flattening configuration.

Every dataset quirk is an entry here rather than a code path: processor
override, numeric-key flag, time overrides, fallback base year and the
calculated fields appended to its rows.

Expected series ceilings (product of non-time dimension sizes) are noted
in max_series where a dataset is known to be wide.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any

from geostat.errors import UnknownDatasetError
from geostat.config.rules import DerivationRule, DerivationKind, validate_rules

PXWEB_BASE_URL = "https://pc-axis.geostat.ge/PXWeb/api/v1/ka/Database"


@dataclass
class DatasetConfig:
    """
    Catalogue entry and flattening configuration for one dataset.

    Attributes:
        dataset_id: Identifier used in request paths
        name: Display name
        description: One-line description
        path: PXWeb table path relative to the database root
        category: Catalogue category ('demography', 'environment', ...)
        title: Title used when the cube carries none
        processor: Name of a registered dataset processor
        numeric_keys: Keep numeric series keys even for one categorical dimension
        year_overrides: Raw time value -> calendar year
        base_year: Dataset-level base of the positional year fallback
        derivations: Calculated fields, in output order
        derivation_variable: PXWeb variable code whose value texts the
            calculated-field labels extend
        time_dimension: Pinned time dimension id
        dimensions: Pinned non-time dimension ids, in series order
        series_filter: Keep only series whose label contains this text
        max_series: Expected ceiling of the series count
    """
    dataset_id: str
    name: str = ""
    description: str = ""
    path: Optional[str] = None
    category: Optional[str] = None
    title: str = ""
    processor: Optional[str] = None
    numeric_keys: bool = False
    year_overrides: Dict[str, int] = field(default_factory=dict)
    base_year: Optional[int] = None
    derivations: List[DerivationRule] = field(default_factory=list)
    derivation_variable: Optional[str] = None
    time_dimension: Optional[str] = None
    dimensions: Optional[List[str]] = None
    series_filter: Optional[str] = None
    max_series: Optional[int] = None

    def __post_init__(self):
        self.year_overrides = {str(k): int(v) for k, v in self.year_overrides.items()}
        validate_rules(self.derivations)

    @property
    def url(self) -> Optional[str]:
        if not self.path:
            return None
        return f"{PXWEB_BASE_URL}/{self.path}"

    def to_dict(self) -> Dict[str, Any]:
        """Catalogue view of the entry."""
        return {
            "id": self.dataset_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
        }


def _years_from(start: int, count: int) -> Dict[str, int]:
    """Override table for cubes whose time values are 0..count-1."""
    return {str(i): start + i for i in range(count)}


def _dataset(dataset_id: str, name: str, description: str, path: Optional[str],
             category: str, **kwargs) -> DatasetConfig:
    return DatasetConfig(dataset_id=dataset_id, name=name, description=description,
                         path=path, category=category, **kwargs)


_DEMOGRAPHY = "Gender%20Statistics/Demography"
_ENV = "Environment%20Statistics"

_ENTRIES = [
    # Demography
    _dataset("divorced-people-age", "Divorced People Age",
             "Mean age of divorced people by gender",
             f"{_DEMOGRAPHY}/21_Mean_Age_of_Divorced_People.px", "demography"),
    _dataset("population", "Population of Georgia",
             "Population statistics of Georgia",
             f"{_DEMOGRAPHY}/01_Population_of_Georgia.px", "demography"),
    _dataset("mean-age", "Mean Age of Population",
             "Mean age of population by gender",
             f"{_DEMOGRAPHY}/02_Mean_Age_of_Population.px", "demography"),
    _dataset("live-births-age", "Live Births by Age",
             "Live births by age of mother",
             f"{_DEMOGRAPHY}/06_Live_Births_by_Age_of_Mother.px", "demography"),
    _dataset("life-expectancy", "Life Expectancy",
             "Life expectancy at birth by gender",
             f"{_DEMOGRAPHY}/16_Life_Expectancy_at_Birth.px", "demography"),

    # Air pollution
    _dataset("air-pollution-tbilisi", "Air Pollution in Tbilisi",
             "Air quality indicators and pollution levels in Tbilisi",
             f"{_ENV}/Air%20Pollution/01_Air_Pollution_Tbilisi.px", "environment"),
    _dataset("emissions-by-source", "Emissions by Source",
             "Air pollutant emissions by source category",
             f"{_ENV}/Air%20Pollution/02_Emissions_by_Source.px", "environment"),
    _dataset("stationary-source-pollution", "Stationary Source Pollution",
             "Pollutants emitted from stationary sources",
             None, "environment",
             processor="filtered_series",
             series_filter="გაფრქვეული",
             max_series=1000),

    # Waste
    _dataset("municipal-waste", "Municipal Waste",
             "Municipal waste generation and management statistics",
             f"{_ENV}/Waste/01_Municipal_Waste.px", "environment",
             title="ნაგავსაყრელებზე განთავსებული მუნიციპალური ნარჩენები",
             numeric_keys=True,
             year_overrides=_years_from(2015, 8),
             derivation_variable="Waste",
             derivations=[
                 DerivationRule(
                     "annual-growth", DerivationKind.GROWTH_RATE, ["0"],
                     labels={
                         "ka": "ნარჩენების ჯამური რაოდენობის წლიური ზრდა (%)",
                         "en": "Annual growth in total waste (%)",
                     },
                 ),
             ]),
    _dataset("waste-recycling", "Waste Recycling",
             "Waste recycling and recovery statistics",
             f"{_ENV}/Waste/02_Waste_Recycling.px", "environment"),

    # Forest resources
    _dataset("forest-area", "Forest Area",
             "Forest area coverage and changes over time",
             f"{_ENV}/Forest%20Resources/01_Forest_Area.px", "environment"),
    _dataset("forest-production", "Forest Production",
             "Forest production and harvesting statistics",
             f"{_ENV}/Forest%20Resources/02_Forest_Production.px", "environment"),
    _dataset("felled-timber-volume", "Felled Timber Volume",
             "Volume of timber obtained from felling",
             None, "environment",
             title="ტყის ჭრით მიღებული ხე-ტყის მოცულობა",
             numeric_keys=True,
             base_year=2010),
    _dataset("illegal-logging", "Illegal Logging",
             "Illegal logging cases and volumes",
             None, "environment",
             title="ტყის უკანონო ჭრა",
             numeric_keys=True),
    _dataset("forest-planting-recovery", "Forest Planting and Recovery",
             "Forest planting, sowing and natural regeneration support by region",
             None, "environment",
             title="ტყის თესვა/დარგვა და ბუნებრივი განახლებისთვის ხელშეწყობა",
             numeric_keys=True,
             max_series=500),
    _dataset("forest-fires", "Forest Fires",
             "Forest and field fires by region",
             None, "environment",
             title="ტყისა და ველის ხანძრები რეგიონების მიხედვით",
             numeric_keys=True,
             year_overrides=_years_from(2017, 7),
             max_series=500),

    # Protected areas
    _dataset("protected-areas", "Protected Areas",
             "Statistics on protected areas and nature reserves",
             f"{_ENV}/Protected%20Areas/01_Protected_Areas.px", "environment"),
    _dataset("biodiversity-indicators", "Biodiversity Indicators",
             "Biodiversity and ecosystem indicators",
             f"{_ENV}/Protected%20Areas/02_Biodiversity_Indicators.px", "environment"),

    # Environmental indicators
    _dataset("environmental-indicators", "Environmental Indicators",
             "Key environmental performance indicators",
             f"{_ENV}/Environmental%20Indicators/01_Environmental_Indicators.px",
             "environment"),
    _dataset("climate-indicators", "Climate Indicators",
             "Climate change and weather indicators",
             f"{_ENV}/Environmental%20Indicators/02_Climate_Indicators.px",
             "environment"),

    # Natural hazards
    _dataset("natural-disasters", "Natural Disasters",
             "Natural disaster occurrence and impact statistics",
             f"{_ENV}/Natural%20Hazards%20and%20Violations%20of%20Law/01_Natural_Disasters.px",
             "environment"),
    _dataset("environmental-violations", "Environmental Violations",
             "Environmental law violations and enforcement",
             f"{_ENV}/Natural%20Hazards%20and%20Violations%20of%20Law/02_Environmental_Violations.px",
             "environment"),
    _dataset("geological-phenomena", "Geological Phenomena",
             "Hazardous geological phenomena by type",
             None, "environment",
             title="Geological Phenomena Data",
             year_overrides=_years_from(1995, 29)),

    # Environmental-economic accounts
    _dataset("environmental-expenditure", "Environmental Expenditure",
             "Environmental protection expenditure accounts",
             f"{_ENV}/Environmental-Economic%20Accounts/01_Environmental_Expenditure.px",
             "environment"),
    _dataset("green-economy", "Green Economy",
             "Green economy and sustainable development indicators",
             f"{_ENV}/Environmental-Economic%20Accounts/02_Green_Economy.px",
             "environment"),
    _dataset("material-flow-indicators", "Material Flow Indicators",
             "Main material flow indicators",
             None, "environment",
             title="მატერიალური ნაკადების ძირითადი მაჩვენებლები",
             numeric_keys=True,
             derivation_variable="Indicators",
             derivations=[
                 DerivationRule(
                     "other-extraction", DerivationKind.DIFFERENCE, ["0", "1"],
                     labels={
                         "ka": "სხვა მოპოვება (მინერალები, წიაღისეული საწვავი)",
                         "en": "Other extraction (minerals, fossil fuels)",
                     },
                 ),
             ]),

    # Water
    _dataset("water-abstraction", "Water Abstraction",
             "Protection and use of water resources",
             None, "environment",
             title="წყლის რესურსების დაცვა და გამოყენება",
             numeric_keys=True),
    _dataset("water-use-households", "Water Use in Households",
             "Water use in households per capita",
             None, "environment",
             title="წყლის გამოყენება შინამეურნეობებში ერთ სულ მოსახლეზე",
             base_year=2015),
    _dataset("sewerage-network-population", "Sewerage Network Population",
             "Population connected to the sewerage network",
             None, "environment",
             title="წყალარინების ქსელზე მიერთებული მოსახლეობა",
             base_year=2015),

    # Energy
    _dataset("energy-intensity", "Energy Intensity",
             "Energy intensity of the economy",
             None, "energy",
             title="ენერგოინტენსიურობა",
             numeric_keys=True,
             derivation_variable="Energy intensity",
             derivations=[
                 # index 4: intensity of total primary energy supply
                 DerivationRule(
                     "annual-change", DerivationKind.GROWTH_RATE, ["4"],
                     labels={"ka": "წლიური ცვლილება, %", "en": "Annual change, %"},
                 ),
             ]),
    _dataset("primary-energy-supply", "Primary Energy Supply",
             "Total primary energy supply by source",
             None, "energy",
             title="პირველადი ენერგიის ჯამური მიწოდება",
             numeric_keys=True,
             derivation_variable="Primary Energy Supply",
             derivations=[
                 # hydro, geothermal/solar/other, biofuels and waste
                 DerivationRule(
                     "renewable", DerivationKind.SUM, ["11", "12", "14"],
                     labels={"ka": "განახლებადი ენერგია", "en": "Renewable energy"},
                 ),
                 # crude oil, electricity
                 DerivationRule(
                     "other", DerivationKind.SUM, ["7", "13"],
                     labels={"ka": "სხვა", "en": "Other"},
                 ),
             ]),
    _dataset("final-energy-consumption", "Final Energy Consumption",
             "Final energy consumption by sector",
             None, "energy",
             title="ენერგიის საბოლოო მოხმარება",
             numeric_keys=True,
             derivation_variable="Final energy consumption",
             derivations=[
                 # agriculture/forestry/fishing, other
                 DerivationRule(
                     "agriculture-and-other", DerivationKind.SUM, ["9", "11"],
                     labels={"ka": "სოფ.მეურნეობა და სხვა", "en": "Agriculture and other"},
                 ),
             ]),
]

# Dataset registry
DATASETS: Dict[str, DatasetConfig] = {entry.dataset_id: entry for entry in _ENTRIES}

CATEGORIES = {
    "demography": {
        "id": "demography",
        "name": "Demography",
        "description": "Population and demographic statistics",
    },
    "environment": {
        "id": "environment",
        "name": "Environment",
        "description": "Environmental and ecological statistics",
    },
    "energy": {
        "id": "energy",
        "name": "Energy",
        "description": "Energy balance and intensity statistics",
    },
}


def get_dataset(dataset_id: Optional[str],
                datasets: Optional[Dict[str, DatasetConfig]] = None) -> DatasetConfig:
    """Get a dataset configuration; unknown ids get the default configuration."""
    registry = DATASETS if datasets is None else datasets
    if dataset_id and dataset_id in registry:
        return registry[dataset_id]
    return DatasetConfig(dataset_id=dataset_id or "")


def require_dataset(dataset_id: str,
                    datasets: Optional[Dict[str, DatasetConfig]] = None) -> DatasetConfig:
    """Get a catalogue entry, raising UnknownDatasetError when absent."""
    registry = DATASETS if datasets is None else datasets
    if dataset_id not in registry:
        raise UnknownDatasetError(
            f"Dataset with id '{dataset_id}' does not exist"
        )
    return registry[dataset_id]


def list_datasets(category: Optional[str] = None) -> List[Dict[str, Any]]:
    """Catalogue entries, optionally restricted to one category."""
    return [
        d.to_dict() for d in DATASETS.values()
        if category is None or d.category == category
    ]
