"""价格数据模型"""

import math
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PriceQuote:
    """单次报价 (不持久化)"""

    value_usd: float
    fetched_at: datetime
    source: str

    @property
    def usable(self) -> bool:
        # 0 / 负数 / NaN / inf 都视为本轮无可用报价
        return math.isfinite(self.value_usd) and self.value_usd > 0
