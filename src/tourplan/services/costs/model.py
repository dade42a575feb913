"""Labor cost rates derived from wage-group configuration."""

from __future__ import annotations

from typing import Optional

from ...config import settings
from ...models.domain import Employee, WageSettings


class CostModel:
    def __init__(self, default_rate: float = settings.default_hourly_rate) -> None:
        self.default_rate = default_rate

    def hourly_rate(self, employee: Optional[Employee], wage_settings: Optional[WageSettings]) -> float:
        """Hourly rate of the employee's wage group, or the default rate when anything is missing."""

        if employee is None or wage_settings is None:
            return self.default_rate
        group = wage_settings.group(employee.wage_group)
        if group is None or not group.hourly_rate:
            return self.default_rate
        return float(group.hourly_rate)

    def labor_cost(self, minutes: float, employee: Optional[Employee], wage_settings: Optional[WageSettings]) -> float:
        return round(minutes / 60 * self.hourly_rate(employee, wage_settings), 2)
