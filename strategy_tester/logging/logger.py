"""Logging setup with structured trade events and performance timing."""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

import pandas as pd
from loguru import logger as loguru_logger
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from ..configs.run_config import BacktestConfig


class TradeEventType(str, Enum):
    """Types of trade events to log."""

    ENTRY = "entry"
    EXIT = "exit"
    STOP_HIT = "stop_hit"
    REJECTED = "rejected"
    EXPIRED = "expired"


_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "taskName",
    "exc_info",
    "exc_text",
    "stack_info",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Fields passed through extra=
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class PerformanceContext:
    """Context manager that logs how long an operation took."""

    def __init__(self, logger: logging.Logger, operation: str, **kwargs):
        """Initialize performance context.

        Args:
            logger: Logger instance
            operation: Operation name
            **kwargs: Extra fields attached to the metric record
        """
        self.logger = logger
        self.operation = operation
        self.fields = kwargs
        self.start_time: Optional[float] = None

    def __enter__(self):
        """Start timing."""
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """End timing and log the duration."""
        if self.start_time is None:
            return False
        elapsed = time.perf_counter() - self.start_time
        log_performance_metric(self.logger, operation=self.operation, duration_seconds=elapsed, **self.fields)
        return False


def setup_logging(config: "BacktestConfig", use_json: Optional[bool] = None, use_rich: Optional[bool] = None) -> None:
    """Setup logging for a backtest run.

    Installs a console handler (rich or plain) on the root logger and an
    optional rotating file handler. loguru gets its own console sink and the
    same log file as a second sink; only code that logs through loguru, such
    as the end-of-run summary, writes there. stdlib records are not forwarded.

    Args:
        config: BacktestConfig instance with output settings
        use_json: Whether to use JSON format for file logs (defaults to config value)
        use_rich: Whether to use rich for console output (defaults to config value)
    """
    if use_json is None:
        use_json = config.output.log_json_format
    if use_rich is None:
        use_rich = config.output.log_use_rich

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_level = getattr(logging, config.output.log_level.upper(), logging.INFO)

    console_handler: logging.Handler
    if use_rich:
        console_handler = RichHandler(rich_tracebacks=True, show_path=False, console=Console(stderr=True))
        console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
    console_handler.setLevel(log_level)

    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)

    loguru_logger.remove()
    loguru_logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=log_level,
        colorize=True,
    )

    log_file: Optional[Path] = None
    if config.output.log_file:
        log_file = Path(config.output.log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setLevel(logging.DEBUG)
        file_formatter: Union[StructuredFormatter, logging.Formatter]
        if use_json:
            file_formatter = StructuredFormatter()
        else:
            file_formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

        loguru_logger.add(
            str(log_file),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG",
            rotation="10 MB",
            retention=5,
            serialize=use_json,
        )

    logging.info(f"Logging initialized. Log file: {log_file}, JSON format: {use_json}, Rich: {use_rich}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def format_timestamp(timestamp: int) -> str:
    """Render a nanosecond timestamp for log messages."""
    return str(pd.Timestamp(timestamp, unit="ns"))


def log_trade_event(
    logger: logging.Logger, event_type: TradeEventType, ticker: str, timestamp: int, **kwargs
) -> None:
    """Log a trade event (entry, exit, stop hit, rejection, expiry).

    Args:
        logger: Logger instance
        event_type: Type of trade event
        ticker: Ticker symbol
        timestamp: Event timestamp in nanoseconds
        **kwargs: Additional event-specific fields
    """
    event_data = {"event_type": event_type.value, "ticker": ticker, "event_time": format_timestamp(timestamp), **kwargs}

    if event_type == TradeEventType.ENTRY:
        logger.info(
            f"TRADE_ENTRY: {ticker} | Side: {kwargs.get('side', 'N/A')} | "
            f"Price: {kwargs.get('entry_price', 'N/A')} | Size: {kwargs.get('size', 'N/A')} | "
            f"Condition: {kwargs.get('condition', 'N/A')}",
            extra=event_data,
        )
    elif event_type == TradeEventType.EXIT:
        logger.info(
            f"TRADE_EXIT: {ticker} | Exit Price: {kwargs.get('exit_price', 'N/A')} | "
            f"Condition: {kwargs.get('condition', 'N/A')} | "
            f"P&L: {kwargs.get('realized_pnl', 0.0):.2f}",
            extra=event_data,
        )
    elif event_type == TradeEventType.STOP_HIT:
        logger.warning(
            f"TRADE_STOP_HIT: {ticker} | Guard: {kwargs.get('guard', 'N/A')} | "
            f"Price: {kwargs.get('price', 'N/A')}",
            extra=event_data,
        )
    elif event_type == TradeEventType.REJECTED:
        logger.warning(f"TRADE_REJECTED: {ticker} | Reason: {kwargs.get('reason', 'N/A')}", extra=event_data)
    elif event_type == TradeEventType.EXPIRED:
        logger.info(f"ORDER_EXPIRED: {ticker} | Order: {kwargs.get('order_id', 'N/A')}", extra=event_data)


def log_signal_generation(
    logger: logging.Logger, ticker: str, timestamp: int, signal_generated: bool, **kwargs
) -> None:
    """Log a strategy's signal decision for one bar.

    Args:
        logger: Logger instance
        ticker: Ticker symbol
        timestamp: Bar timestamp in nanoseconds
        signal_generated: Whether a signal was generated
        **kwargs: Additional fields (side, condition, strategy)
    """
    signal_data = {
        "ticker": ticker,
        "event_time": format_timestamp(timestamp),
        "signal_generated": signal_generated,
        **kwargs,
    }

    if signal_generated:
        logger.debug(
            f"SIGNAL_GENERATED: {ticker} | Side: {kwargs.get('side', 'N/A')} | "
            f"Condition: {kwargs.get('condition', 'N/A')}",
            extra=signal_data,
        )
    else:
        logger.debug(f"SIGNAL_NOT_GENERATED: {ticker} | No trigger", extra=signal_data)


def log_portfolio_snapshot(
    logger: logging.Logger,
    timestamp: int,
    buying_power: float,
    equity: float,
    open_positions: int,
    pending_orders: int,
    realized_pnl: float,
    unrealized_pnl: float,
    **kwargs,
) -> None:
    """Log portfolio state snapshot.

    Args:
        logger: Logger instance
        timestamp: Snapshot timestamp in nanoseconds
        buying_power: Available buying power
        equity: Buying power plus marked value of open positions
        open_positions: Number of open positions
        pending_orders: Number of orders waiting in the queue
        realized_pnl: Cumulative realized P&L
        unrealized_pnl: Current unrealized P&L
        **kwargs: Additional portfolio metrics
    """
    when = format_timestamp(timestamp)
    snapshot_data = {
        "event_time": when,
        "buying_power": buying_power,
        "equity": equity,
        "open_positions": open_positions,
        "pending_orders": pending_orders,
        "realized_pnl": realized_pnl,
        "unrealized_pnl": unrealized_pnl,
        **kwargs,
    }

    logger.info(
        f"PORTFOLIO_SNAPSHOT: {when} | Equity: ${equity:,.2f} | "
        f"Buying Power: ${buying_power:,.2f} | Positions: {open_positions} | "
        f"Pending: {pending_orders} | Realized P&L: ${realized_pnl:,.2f} | "
        f"Unrealized P&L: ${unrealized_pnl:,.2f}",
        extra=snapshot_data,
    )


def log_performance_metric(
    logger: logging.Logger,
    operation: str,
    duration_seconds: float,
    **kwargs,
) -> None:
    """Log performance metrics.

    Args:
        logger: Logger instance
        operation: Operation name
        duration_seconds: Duration in seconds
        **kwargs: Additional performance metrics
    """
    metric_data = {
        "operation": operation,
        "duration_seconds": duration_seconds,
        **kwargs,
    }

    msg = f"PERFORMANCE: {operation} | Duration: {duration_seconds:.4f}s"
    bars = kwargs.get("bars")
    if bars and duration_seconds > 0:
        msg += f" | Bars/s: {bars / duration_seconds:,.0f}"

    logger.debug(msg, extra=metric_data)
