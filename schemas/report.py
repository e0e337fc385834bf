"""
Pydantic schemas for the financial summary endpoint.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List
from pydantic import BaseModel, ConfigDict


class IncomeOut(BaseModel):
     total_income: Decimal
     paid_income: Decimal
     pending_income: Decimal
     overdue_income: Decimal

     model_config = ConfigDict(from_attributes=True)


class ExpensesOut(BaseModel):
     total_expenses: Decimal
     by_category: Dict[str, Decimal]

     model_config = ConfigDict(from_attributes=True)


class ProfitLossOut(BaseModel):
     income: Decimal
     expenses: Decimal
     net_profit: Decimal
     margin: Decimal

     model_config = ConfigDict(from_attributes=True)


class PropertyMetricsOut(BaseModel):
     property_id: int
     property_name: str
     income: Decimal
     expenses: Decimal
     net_profit: Decimal
     margin: Decimal

     model_config = ConfigDict(from_attributes=True)


class ReportSummary(BaseModel):
     range: str
     label: str
     start: datetime
     end: datetime
     income: IncomeOut
     expenses: ExpensesOut
     profit_loss: ProfitLossOut
     properties: List[PropertyMetricsOut]
