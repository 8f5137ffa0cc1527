#!/usr/bin/env python3
"""
CLI tool for analyzing price series stored as CSV files.
Usage: python -m analytics.analyze_prices COMMAND FILE [options]
"""

import sys
import json
import logging
import argparse
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from analytics.calculations.indicators import sma, ema, rsi, bollinger_bands, macd
from analytics.calculations.returns import simple_returns, log_returns, cumulative_returns
from analytics.config import (
    load_settings,
    ConfigError,
    RSI_PERIOD,
    BOLLINGER_PERIOD,
    MACD_SLOW,
    MACD_SIGNAL,
)
from analytics.errors import AnalyticsError
from analytics.guardrails import validate_price_series, validate_summary, DataQualityError
from analytics.metrics_aggregator import (
    stats_summary,
    portfolio_risk,
    compare_series,
    correlation_report,
)

logger = logging.getLogger(__name__)


class PriceFileError(Exception):
    """Raised when a price file cannot be read."""
    pass


def load_price_file(
    path: Path,
    column: str = 'close',
    window: Optional[int] = None
) -> Dict[str, Any]:
    """
    Load one price column from a CSV file.

    Rows are sorted by a 'date' column when present; rows with a missing
    price are dropped. With a window, only the last `window` rows are kept.

    Returns:
        Dictionary with 'name', 'prices' (list of floats) and 'dates'
        (ISO strings, or None when the file has no date column)

    Raises:
        PriceFileError: If the file or column is missing, or the file
            cannot be parsed
    """
    if not path.exists():
        raise PriceFileError(f"Price file not found: {path}")

    try:
        df = pd.read_csv(path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, ValueError) as e:
        raise PriceFileError(f"Cannot parse price file {path}: {e}") from e

    if column not in df.columns:
        raise PriceFileError(f"Column '{column}' not found in {path} (have {list(df.columns)})")

    dates = None
    if 'date' in df.columns:
        try:
            df['date'] = pd.to_datetime(df['date'])
        except (ValueError, TypeError) as e:
            raise PriceFileError(f"Invalid date in {path}: {e}") from e
        df = df.sort_values('date').reset_index(drop=True)

    df = df.dropna(subset=[column])

    try:
        prices = df[column].astype(float)
    except (ValueError, TypeError) as e:
        raise PriceFileError(f"Non-numeric value in column '{column}' of {path}: {e}") from e

    if window is not None:
        df = df.tail(window)
        prices = prices.tail(window)

    if 'date' in df.columns:
        dates = [d.date().isoformat() for d in df['date']]

    return {
        'name': path.stem.upper(),
        'prices': prices.tolist(),
        'dates': dates
    }


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def _label_points(dates: Optional[List[str]], start: int, count: int) -> List[Any]:
    """Date (or price index) of each indicator output."""
    positions = range(start, start + count)
    if dates is None:
        return list(positions)
    return [dates[i] for i in positions]


def _load(path: str, args) -> Dict[str, Any]:
    return load_price_file(Path(path), args.column, args.window)


def run_summary(args, settings) -> Dict[str, Any]:
    series = _load(args.prices, args)
    validate_price_series(series['prices'], name=series['name'])

    benchmark = None
    if args.benchmark:
        benchmark = _load(args.benchmark, args)
        # Beta needs two benchmark returns
        validate_price_series(benchmark['prices'], min_points=3, name=benchmark['name'])

    summary = stats_summary(
        series['prices'],
        benchmark['prices'] if benchmark else None,
        risk_free_rate=settings.risk_free_rate,
        trading_days=settings.trading_days,
        confidence=settings.confidence
    )
    validate_summary(summary)

    return {
        'name': series['name'],
        'period': len(series['prices']),
        'benchmark': benchmark['name'] if benchmark else None,
        'statistics': summary
    }


def _dated_points(
    dates: Optional[List[str]],
    start: int,
    values: Dict[str, Any],
    limit: int
) -> List[Dict[str, Any]]:
    """Most recent `limit` points, each labelled by date or price index."""
    count = len(next(iter(values.values())))
    labels = _label_points(dates, start, count)
    limit = min(limit, count)

    data = []
    for i in range(count - limit, count):
        point = {'date' if dates else 'index': labels[i]}
        point.update({key: float(series_values[i]) for key, series_values in values.items()})
        data.append(point)
    return data


def run_returns(args, settings) -> Dict[str, Any]:
    series = _load(args.prices, args)
    prices = series['prices']

    if args.type == 'log':
        returns = log_returns(prices)
    elif args.type == 'cumulative':
        returns = cumulative_returns(simple_returns(prices))
    else:
        returns = simple_returns(prices)

    # Return i closes at price index i + 1
    return {
        'name': series['name'],
        'type': args.type,
        'data': _dated_points(series['dates'], 1, {'return': returns}, len(returns))
    }


def run_indicator(args, settings) -> Dict[str, Any]:
    series = _load(args.prices, args)
    prices, dates = series['prices'], series['dates']
    indicator = args.indicator

    if args.period is not None:
        period = args.period
    elif indicator == 'bollinger':
        period = BOLLINGER_PERIOD
    else:
        period = RSI_PERIOD

    if indicator == 'sma':
        values = {'value': sma(prices, period)}
        start = period - 1
    elif indicator == 'ema':
        values = {'value': ema(prices, period)}
        start = period - 1
    elif indicator == 'rsi':
        values = {'value': rsi(prices, period)}
        start = period + 1
    elif indicator == 'bollinger':
        values = bollinger_bands(prices, period)
        start = period - 1
    else:
        result = macd(prices)
        # Align all three lines on the histogram's first point
        trim = MACD_SIGNAL - 1
        values = {
            'macd_line': result['macd_line'][trim:],
            'signal_line': result['signal_line'],
            'histogram': result['histogram']
        }
        start = MACD_SLOW + MACD_SIGNAL - 2

    return {
        'name': series['name'],
        'indicator': indicator,
        'period': None if indicator == 'macd' else period,
        'data': _dated_points(dates, start, values, args.limit)
    }


def _load_price_map(args, purpose: str) -> Dict[str, List[float]]:
    price_map = {}
    for path in args.prices:
        series = _load(path, args)
        price_map[series['name']] = series['prices']

    if len(price_map) < 2:
        raise DataQualityError(f"At least 2 distinct price files are required for {purpose}")

    return price_map


def run_correlation(args, settings) -> Dict[str, Any]:
    return correlation_report(_load_price_map(args, 'correlation'))


def run_compare(args, settings) -> Dict[str, Any]:
    price_map = _load_price_map(args, 'comparison')
    for name, prices in price_map.items():
        validate_price_series(prices, name=name)

    comparison = compare_series(
        price_map,
        risk_free_rate=settings.risk_free_rate,
        trading_days=settings.trading_days
    )
    for entry in comparison:
        validate_summary(entry['metrics'])

    return {'names': list(price_map.keys()), 'comparison': comparison}


def run_risk(args, settings) -> Dict[str, Any]:
    names = []
    return_series = []
    for path in args.prices:
        series = _load(path, args)
        validate_price_series(series['prices'], name=series['name'])
        names.append(series['name'])
        return_series.append(simple_returns(series['prices']))

    confidence = args.confidence if args.confidence is not None else settings.confidence

    report = portfolio_risk(
        return_series,
        weights=args.weights,
        confidence=confidence,
        risk_free_rate=settings.risk_free_rate,
        trading_days=settings.trading_days
    )
    validate_summary(report['risk_metrics'])

    return {'names': names, **report}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Analyze price series stored in CSV files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m analytics.analyze_prices summary data/AAPL.csv --benchmark data/SPY.csv
  python -m analytics.analyze_prices --window 252 returns data/AAPL.csv --type log
  python -m analytics.analyze_prices indicator data/AAPL.csv --indicator rsi --limit 20
  python -m analytics.analyze_prices correlation data/AAPL.csv data/MSFT.csv
  python -m analytics.analyze_prices compare data/AAPL.csv data/MSFT.csv data/SPY.csv
  python -m analytics.analyze_prices risk data/AAPL.csv data/MSFT.csv --weights 0.6 0.4
        """
    )
    parser.add_argument('--config',
                       help='Path to YAML settings file (default: $ANALYTICS_CONFIG)')
    parser.add_argument('--column',
                       default='close',
                       help='Price column to read (default: close)')
    parser.add_argument('--window',
                       type=int,
                       help='Use only the most recent N prices of each file')

    subparsers = parser.add_subparsers(dest='command', required=True)

    summary = subparsers.add_parser('summary', help='Full statistics summary')
    summary.add_argument('prices', help='CSV file with prices')
    summary.add_argument('--benchmark', help='CSV file with benchmark prices')

    returns = subparsers.add_parser('returns', help='Dated return series')
    returns.add_argument('prices', help='CSV file with prices')
    returns.add_argument('--type',
                        default='simple',
                        choices=['simple', 'log', 'cumulative'],
                        help='Return type (default: simple)')

    indicator = subparsers.add_parser('indicator', help='Technical indicator values')
    indicator.add_argument('prices', help='CSV file with prices')
    indicator.add_argument('--indicator',
                          required=True,
                          choices=['sma', 'ema', 'rsi', 'bollinger', 'macd'])
    indicator.add_argument('--period', type=int,
                          help='Indicator period (not used by macd, which is fixed at 12/26/9)')
    indicator.add_argument('--limit', type=int, default=100,
                          help='Number of most recent points to output (default: 100)')

    correlation = subparsers.add_parser('correlation', help='Correlation matrix of returns')
    correlation.add_argument('prices', nargs='+', help='Two or more CSV files')

    compare = subparsers.add_parser('compare', help='Headline metrics side by side')
    compare.add_argument('prices', nargs='+', help='Two or more CSV files')

    risk = subparsers.add_parser('risk', help='Portfolio risk metrics')
    risk.add_argument('prices', nargs='+', help='One or more CSV files')
    risk.add_argument('--weights', type=float, nargs='+', help='Weight per file')
    risk.add_argument('--confidence', type=float, help='VaR confidence level')

    return parser


def check_args(parser: argparse.ArgumentParser, args) -> None:
    """Reject option values argparse types cannot express."""
    if args.window is not None and args.window < 1:
        parser.error(f"--window must be at least 1, got {args.window}")

    if args.command == 'indicator':
        if args.limit < 0:
            parser.error(f"--limit must be non-negative, got {args.limit}")
        if args.indicator == 'macd' and args.period is not None:
            parser.error("--period is not supported for macd (fixed 12/26/9)")


COMMANDS = {
    'summary': run_summary,
    'returns': run_returns,
    'indicator': run_indicator,
    'correlation': run_correlation,
    'compare': run_compare,
    'risk': run_risk,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    check_args(parser, args)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    logger.debug(f"Running {args.command} with settings {settings.to_dict()}")

    try:
        result = COMMANDS[args.command](args, settings)
    except (AnalyticsError, DataQualityError, PriceFileError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(json.dumps(_to_jsonable(result), indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
