"""Logging and reporting helpers."""

from .logger import HumanLogger
from .report import generate_portfolio_report

__all__ = ["HumanLogger", "generate_portfolio_report"]
