"""Backtest results: trade table, summary metrics and console report."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from loguru import logger as loguru_logger
from rich import box
from rich.console import Console
from rich.table import Table

from ..models.bar import Bar
from ..models.positions import Position
from ..models.trade_log import TradeAction, TradeLog

TRADE_COLUMNS = [
    "position_id",
    "ticker",
    "action",
    "side",
    "size",
    "timestamp",
    "price",
    "entry_price",
    "exit_price",
    "realized_pnl",
    "strategy",
    "condition",
]


@dataclass
class BacktestResult:
    """Everything a finished run produced."""

    trades: List[TradeLog]
    closed_positions: List[Position]
    rejected_bars: List[Bar]
    starting_buying_power: float
    final_buying_power: float
    final_equity: float
    realized_pnl: float
    open_positions: int = 0
    equity_curve: List[Tuple[int, float]] = field(default_factory=list)  # (timestamp ns, equity) per accepted bar

    def to_dataframe(self) -> pd.DataFrame:
        """One row per trade log, indicator values in ``ind_*`` columns."""
        if not self.trades:
            return pd.DataFrame(columns=TRADE_COLUMNS)
        df = pd.DataFrame([trade.to_dict() for trade in self.trades])
        df["datetime"] = pd.to_datetime(df["timestamp"], unit="ns")
        return df

    def equity_series(self) -> pd.Series:
        """Equity indexed by bar time."""
        if not self.equity_curve:
            return pd.Series(dtype=float, name="equity")
        timestamps, values = zip(*self.equity_curve)
        return pd.Series(values, index=pd.to_datetime(list(timestamps), unit="ns"), name="equity")

    def max_drawdown(self) -> float:
        """Largest peak-to-trough equity decline as a fraction of the peak."""
        if len(self.equity_curve) < 2:
            return 0.0
        equity = np.array([value for _, value in self.equity_curve], dtype=float)
        peaks = np.maximum.accumulate(equity)
        drawdowns = (peaks - equity) / peaks
        return float(drawdowns.max())

    def summary(self) -> Dict[str, Any]:
        """Summary metrics of the run."""
        exits = [t for t in self.trades if t.action == TradeAction.EXIT]
        pnls = [t.realized_pnl for t in exits if t.realized_pnl is not None]
        winning = len([p for p in pnls if p > 0])
        losing = len([p for p in pnls if p < 0])
        total_trades = len(exits)

        return {
            "starting_buying_power": self.starting_buying_power,
            "final_buying_power": self.final_buying_power,
            "final_equity": self.final_equity,
            "total_return": self.final_equity / self.starting_buying_power - 1,
            "realized_pnl": self.realized_pnl,
            "total_trades": total_trades,
            "winning_trades": winning,
            "losing_trades": losing,
            "win_rate": winning / total_trades if total_trades > 0 else 0.0,
            "avg_pnl": float(np.mean(pnls)) if pnls else 0.0,
            "max_drawdown": self.max_drawdown(),
            "open_positions": self.open_positions,
            "rejected_bars": len(self.rejected_bars),
        }

    def print_summary(self, console: Optional[Console] = None) -> None:
        """Print the summary as a rich table."""
        console = console or Console()
        metrics = self.summary()

        table = Table(title="Backtest Summary", box=box.ROUNDED, show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Value", style="green", justify="right")

        table.add_row("Starting Buying Power", f"{metrics['starting_buying_power']:,.2f}")
        table.add_row("Final Equity", f"{metrics['final_equity']:,.2f}")
        table.add_row("Total Return", f"{metrics['total_return']*100:.2f}%")
        table.add_row("Realized P&L", f"{metrics['realized_pnl']:,.2f}")
        table.add_row("Total Trades", f"{metrics['total_trades']}")
        table.add_row("Win Rate", f"{metrics['win_rate']*100:.2f}%")
        table.add_row("Max Drawdown", f"{metrics['max_drawdown']*100:.2f}%")
        table.add_row("Open Positions", f"{metrics['open_positions']}")
        table.add_row("Rejected Bars", f"{metrics['rejected_bars']}")

        console.print(table)

    def log_summary(self) -> None:
        """Write the summary to the loguru sinks configured by setup_logging."""
        metrics = self.summary()
        loguru_logger.info(
            f"Backtest finished: trades={metrics['total_trades']}, "
            f"realized_pnl={metrics['realized_pnl']:.2f}, "
            f"return={metrics['total_return']*100:.2f}%, "
            f"max_drawdown={metrics['max_drawdown']*100:.2f}%, "
            f"rejected_bars={metrics['rejected_bars']}"
        )
