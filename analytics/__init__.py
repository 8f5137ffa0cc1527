"""
Analytics Engine Module

Pure calculations over historical price series:
- Returns (simple, log, cumulative, annualized)
- Risk statistics (volatility, Sharpe, Sortino, drawdown, VaR, CVaR, beta, alpha)
- Technical indicators (SMA, EMA, RSI, Bollinger Bands, MACD)
- Statistics summary and cross-series reports
"""

__version__ = "0.1.0"
