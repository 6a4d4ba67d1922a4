"""LeadCost-Engine: cost aggregation and reporting for outreach campaigns."""

from leadcost_engine.costs.currency import format_cost, format_number, usd_to_eur
from leadcost_engine.engine import CostEngine

__all__ = [
    "CostEngine",
    "format_cost",
    "format_number",
    "usd_to_eur",
]
__version__ = "0.1.0"
