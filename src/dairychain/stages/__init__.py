"""Stage agents: one per physical node of the supply chain."""

from dairychain.stages.base import Stage, StageContext
from dairychain.stages.collection import CollectionPoint, CollectionState
from dairychain.stages.distribution import (
    Customer,
    Distributor,
    DistributorState,
    Retailer,
    RetailerState,
)
from dairychain.stages.farm import Farm
from dairychain.stages.processing import PIPELINE_ORDER, PlantState, ProcessingPlant

__all__ = [
    "PIPELINE_ORDER",
    "CollectionPoint",
    "CollectionState",
    "Customer",
    "Distributor",
    "DistributorState",
    "Farm",
    "PlantState",
    "ProcessingPlant",
    "Retailer",
    "RetailerState",
    "Stage",
    "StageContext",
]
