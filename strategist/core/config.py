import os
from pathlib import Path
from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional, Dict, Any, Callable

from strategist.core.types import CADENCES, PHASES, CADENCE_WEEKLY, PHASE_4

load_dotenv()


class EnvConfig:
    """Small helper for reading and casting environment variables.

    Usage: EnvConfig.get('STRATEGIC_CADENCE', cast=str, aliases=['CADENCE'])
    """

    @staticmethod
    def get(name: str, default: Any = None, cast: Optional[Callable] = None, aliases: Optional[list] = None):
        aliases = aliases or []
        for key in (name, *aliases):
            val = os.getenv(key)
            if val is not None and val.strip():
                val = val.strip()
                if cast is not None:
                    try:
                        return cast(val)
                    except Exception as exc:  # keep error explicit
                        raise ValueError(f"Invalid value for {key}: {exc}")
                return val
        return default


# Debug flag
DEBUG = EnvConfig.get('DEBUG', default='False', cast=lambda v: v.lower() == 'true')

DEFAULT_INSUFFICIENT_SIGNAL_THRESHOLD: float = 0.4

AGENT_ROLE_NEWS = 'news'
AGENT_ROLE_STRATEGIC = 'strategic'
AGENT_ROLES = (AGENT_ROLE_NEWS, AGENT_ROLE_STRATEGIC)


@dataclass
class BaseConfig:
    """Mixin-like helper for dataclasses that load from envs and validate."""

    @classmethod
    def _env(cls, name: str, default: Any = None, cast: Optional[Callable] = None, aliases: Optional[list] = None):
        return EnvConfig.get(name, default=default, cast=cast, aliases=aliases)

    def validate(self, required: bool = True):
        """Default no-op; override in subclasses with required flag."""
        return None


@dataclass
class OrchestratorConfig(BaseConfig):
    """Fixed per-orchestrator run configuration.

    Fields left as None resolve to the environment value, then the built-in
    default. Any value passed to the constructor wins, including one equal
    to the default.
    """
    cadence: Optional[str] = None
    phase: Optional[str] = None
    insufficient_signal_threshold: Optional[float] = None

    def __post_init__(self):
        if self.cadence is None:
            self.cadence = self._env('STRATEGIC_CADENCE', default=CADENCE_WEEKLY, cast=str.lower)
        if self.phase is None:
            self.phase = self._env('STRATEGIC_PHASE', default=PHASE_4, cast=str.lower)
        if self.insufficient_signal_threshold is None:
            self.insufficient_signal_threshold = self._env(
                'STRATEGIC_INSUFFICIENT_THRESHOLD',
                default=DEFAULT_INSUFFICIENT_SIGNAL_THRESHOLD,
                cast=float,
            )

    def validate(self, required: bool = True) -> None:
        if self.cadence not in CADENCES:
            raise ValueError(f'cadence must be one of {list(CADENCES)}')
        if self.phase is not None and self.phase not in PHASES:
            raise ValueError(f'phase must be one of {list(PHASES)}')
        if not 0.0 <= self.insufficient_signal_threshold <= 1.0:
            raise ValueError('insufficient_signal_threshold must be between 0 and 1')


@dataclass
class JournalConfig(BaseConfig):
    root_dir: Path = None

    def __post_init__(self):
        base = self._env('STRATEGIC_MEMORY_DIR', default=os.getcwd())
        self.root_dir = Path(base) if self.root_dir is None else Path(self.root_dir)

    def validate(self, required: bool = True) -> None:
        if not isinstance(self.root_dir, Path):
            self.root_dir = Path(self.root_dir)
        if self.root_dir.exists() and not self.root_dir.is_dir():
            raise ValueError(f'STRATEGIC_MEMORY_DIR is not a directory: {self.root_dir}')

    @property
    def memory_dir(self) -> Path:
        return self.root_dir / 'memory'


@dataclass
class TaskConfig(BaseConfig):
    """Defaults for chat-text parsing.

    As with OrchestratorConfig, None fields resolve from the environment
    and then the built-in default; explicit values are kept as given.
    """
    default_source_type: Optional[str] = None
    default_cadence: Optional[str] = None
    default_phase: Optional[str] = None
    agent_role: Optional[str] = None

    def __post_init__(self):
        if self.default_source_type is None:
            self.default_source_type = self._env('STRATEGIC_SOURCE_TYPE', default='telegram')
        if self.default_cadence is None:
            self.default_cadence = self._env('STRATEGIC_DEFAULT_CADENCE', default=CADENCE_WEEKLY, cast=str.lower)
        if self.default_phase is None:
            self.default_phase = self._env('STRATEGIC_DEFAULT_PHASE', default=PHASE_4, cast=str.lower)
        if self.agent_role is None:
            self.agent_role = self._env('AGENT_ROLE', default=AGENT_ROLE_NEWS, cast=str.lower)

    def validate(self, required: bool = True) -> None:
        if self.default_cadence not in CADENCES:
            raise ValueError(f'default_cadence must be one of {list(CADENCES)}')
        if self.default_phase not in PHASES:
            raise ValueError(f'default_phase must be one of {list(PHASES)}')
        if self.agent_role not in AGENT_ROLES:
            raise ValueError(f'agent_role must be one of {list(AGENT_ROLES)}')


class AppConfig:
    """Central application configuration container.

    Sub-configs are attributes (e.g., `config.orchestrator`). Each instance
    reads the environment when it is built, so `AppConfig.from_env()` always
    reflects the current environment.
    """

    def __init__(
        self,
        orchestrator: Optional[OrchestratorConfig] = None,
        journal: Optional[JournalConfig] = None,
        tasks: Optional[TaskConfig] = None,
    ):
        self.orchestrator = orchestrator if orchestrator is not None else OrchestratorConfig()
        self.journal = journal if journal is not None else JournalConfig()
        self.tasks = tasks if tasks is not None else TaskConfig()

    def validate_all(self, strict: bool = False) -> None:
        self.orchestrator.validate(required=strict)
        self.journal.validate(required=strict)
        self.tasks.validate(required=strict)

    @staticmethod
    def check_availability() -> Dict[str, Dict[str, Any]]:
        """Return availability map for each config.

        For each named sub-config return a dict with keys:
        - available: bool
        - reason: Optional[str] explaining failure when available is False
        """
        results: Dict[str, Dict[str, Any]] = {}
        configs = {
            'orchestrator': OrchestratorConfig(),
            'journal': JournalConfig(),
            'tasks': TaskConfig(),
        }
        for name, cfg in configs.items():
            try:
                cfg.validate(required=True)
                results[name] = {'available': True, 'reason': None}
            except ValueError as e:
                results[name] = {'available': False, 'reason': str(e)}
        return results

    @classmethod
    def from_env(cls, strict: bool = False) -> 'AppConfig':
        config = cls()
        config.validate_all(strict=strict)
        return config
