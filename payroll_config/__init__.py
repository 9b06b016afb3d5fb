"""
payroll_config -- single public entrypoint for payroll rules.

Responsibility:
    Provides the ONLY way to obtain payroll rules at runtime through
    ``get_active_config()``.  Services never read rule files directly.
    Returns a frozen ``PayrollRules``.

Architecture position:
    Configuration -- YAML-driven rule sets.  Sits above ``payroll_kernel``
    and ``payroll_engines`` and below ``payroll_services`` /
    ``payroll_modules``.  The kernel and engines MUST NEVER import from
    ``payroll_config``.

Invariants enforced:
    - Deterministic loading: the same YAML always produces the same
      ``PayrollRules`` and checksum.

Failure modes:
    - ``ConfigurationError`` -- missing set, unreadable YAML, or values
      rejected by rule validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PAYROLL_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying each payslip to the rule set that produced it.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from payroll_config.loader import compute_checksum, load_yaml_file, parse_payroll_rules
from payroll_config.schema import DEFAULT_SHIFTS, PayrollRules
from payroll_kernel.exceptions import ConfigurationError
from payroll_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

RULES_FILENAME = "payroll.yaml"


def get_active_config(
    config_name: str = "default",
    config_dir: Path | None = None,
) -> PayrollRules:
    """The ONLY public configuration entrypoint.

    Guarantees:
        - The returned ``PayrollRules`` has passed every rule validation.
        - A ``PAYROLL_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - No caching across calls; callers hold the returned rules for the
          duration of a run.

    Args:
        config_name: Name of the set directory under ``config_dir``.
        config_dir: Override path to the sets directory.
            Defaults to payroll_config/sets/.

    Raises:
        ConfigurationError: If the set is missing or invalid.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    path = sets_dir / config_name / RULES_FILENAME

    try:
        data = load_yaml_file(path)
    except FileNotFoundError:
        raise ConfigurationError(config_name, f"no rule file at {path}") from None
    except yaml.YAMLError as exc:
        raise ConfigurationError(config_name, f"invalid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(config_name, "rule file must contain a mapping")

    checksum = compute_checksum(data)
    try:
        rules = parse_payroll_rules(data, checksum=checksum)
    except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
        raise ConfigurationError(config_name, str(exc)) from exc

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "config_id": rules.config_id,
            "config_version": rules.version,
            "checksum": checksum,
            "currency": rules.currency,
            "shift_count": len(rules.shifts),
            "surplus_formula": rules.leave.surplus_formula.value,
            "absence_penalty_method": rules.absence_penalty.method.value,
        },
    )
    return rules


__all__ = [
    "DEFAULT_SHIFTS",
    "PayrollRules",
    "compute_checksum",
    "get_active_config",
]
