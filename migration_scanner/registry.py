"""Default rule registration."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Type

from .config import ConfigError, ScannerConfig
from .rules import Rule
from .rules.authentication import AuthenticationRule
from .rules.com_interop import ComInteropRule
from .rules.configuration import ConfigurationRule
from .rules.cryptography import CryptographyRule
from .rules.cyberark import CyberArkRule
from .rules.filesystem import FileSystemRule
from .rules.iis import IisCompatibilityRule
from .rules.packages import PackageRule
from .rules.pinvoke import PInvokeRule
from .rules.platform_detection import PlatformDetectionRule
from .rules.quartz import QuartzRule
from .rules.windows_api import WindowsApiRule

# registration order drives progress reporting and finding order
RULE_TYPES: Dict[str, Type] = {
    rule_type.id: rule_type
    for rule_type in (
        WindowsApiRule,
        PInvokeRule,
        ComInteropRule,
        FileSystemRule,
        AuthenticationRule,
        CryptographyRule,
        ConfigurationRule,
        PackageRule,
        QuartzRule,
        CyberArkRule,
        IisCompatibilityRule,
        PlatformDetectionRule,
    )
}


def build_rules(config: Optional[ScannerConfig] = None) -> List[Rule]:
    config = config or ScannerConfig()
    referenced = set(config.disabled_rules) | set(config.rule_options)
    unknown = referenced - set(RULE_TYPES)
    if unknown:
        raise ConfigError(f"unknown rule ids: {', '.join(sorted(unknown))}")

    rules: List[Rule] = []
    for rule_id, rule_type in RULE_TYPES.items():
        if rule_id in config.disabled_rules:
            continue
        options = config.rule_options.get(rule_id, {})
        try:
            rules.append(rule_type(**options))
        except (TypeError, re.error) as exc:
            raise ConfigError(f"invalid options for {rule_id}: {exc}") from exc
    return rules


def default_rules() -> List[Rule]:
    return build_rules()
