"""Yahoo Finance market data adapters."""

from .intraday_adapter import YahooIntradayAdapter, frame_to_raw_bars, plan_chunks

__all__ = ["YahooIntradayAdapter", "frame_to_raw_bars", "plan_chunks"]
