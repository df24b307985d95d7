"""
The bridge config json has several sections (environments, vault, dispatch).
Each is isolated here as a dataclass with a `merge_in` that reports problems
instead of raising, so the bridge can log them and keep its defaults.
"""
#pylint:disable=line-too-long

from dataclasses import dataclass, field
from typing import Any, List, Optional

UNSET_USER_ID = -1


@dataclass(slots=True, frozen=True)
class ConnectionSettings:
    """One named environment: the tenant id and the Redis URL it polls."""
    user_id: int = UNSET_USER_ID
    queue_url: str = ""

    @property
    def is_configured(self) -> bool:
        return self.user_id != UNSET_USER_ID and self.queue_url != ""

    def problems(self) -> List[str]:
        """User-facing notices for an unconfigured environment (empty when configured)."""
        notices = []
        if self.user_id == UNSET_USER_ID:
            notices.append("Please set your Spanreed user ID in the plugin settings.")
        if self.queue_url == "":
            notices.append("Please set your Redis URL in the plugin settings.")
        return notices


@dataclass(slots=True)
class EnvironmentsConfig:
    """
    A small named collection of ConnectionSettings with one active entry.
    """
    active: str = "production"
    environments: dict[str, ConnectionSettings] = field(default_factory=dict)

    @property
    def current(self) -> ConnectionSettings:
        return self.environments.get(self.active, ConnectionSettings())

    def merge_in(self, active_environment: Optional[str] = None, environments: Optional[dict[str, Any]] = None, **_) -> List[str]:
        all_problems = []
        if environments is not None:
            if not isinstance(environments, dict):
                all_problems.append(f"The provided environments was not an object. It was {type(environments)}")
            else:
                for name, entry in environments.items():
                    if not isinstance(entry, dict):
                        all_problems.append(f"Environment '{name}' was not an object. It was {type(entry)}")
                        continue
                    user_id = entry.get("user_id", UNSET_USER_ID)
                    queue_url = entry.get("queue_url", "")
                    if isinstance(user_id, bool) or not isinstance(user_id, int):
                        all_problems.append(f"Environment '{name}' user_id was not an integer. It was {type(user_id)}")
                        continue
                    if not isinstance(queue_url, str):
                        all_problems.append(f"Environment '{name}' queue_url was not a string. It was {type(queue_url)}")
                        continue
                    self.environments[name] = ConnectionSettings(user_id=user_id, queue_url=queue_url)
        if active_environment is not None:
            if not isinstance(active_environment, str):
                all_problems.append(f"The provided active_environment was not a string. It was {type(active_environment)}")
            else:
                self.active = active_environment
        return all_problems

    def override(self, user_id: str = "", queue_url: str = "") -> List[str]:
        """Apply SPANREED_USER_ID / SPANREED_REDIS_URL on top of the active environment."""
        all_problems = []
        current = self.current
        new_user_id = current.user_id
        if user_id:
            try:
                new_user_id = int(user_id)
            except ValueError:
                all_problems.append(f"SPANREED_USER_ID was not an integer. It was {user_id!r}")
        self.environments[self.active] = ConnectionSettings(
            user_id=new_user_id,
            queue_url=queue_url or current.queue_url,
        )
        return all_problems


@dataclass(slots=True)
class DispatchConfig:
    """
    Timing of the dispatch loop. `poll_timeout_seconds` bounds how long one
    blocking pop may wait; `idle_delay_seconds` is slept after an idle cycle
    (0 reschedules immediately); `retry_delay_seconds` is slept after a
    faulted cycle.
    """
    poll_timeout_seconds: float = 30
    idle_delay_seconds: float = 0
    retry_delay_seconds: float = 3

    def __post_init__(self):
        assert self.poll_timeout_seconds > 0.0,\
            "The provided poll_timeout_seconds must be a float > 0.0"
        assert self.idle_delay_seconds >= 0.0,\
            "The provided idle_delay_seconds must be a float ≥ 0.0"
        assert self.retry_delay_seconds > 0.0,\
            "The provided retry_delay_seconds must be a float > 0.0"

    def merge_in(self, **kwargs) -> List[str]:
        all_problems = []
        if "poll_timeout_seconds" in kwargs:
            if isinstance((z := kwargs["poll_timeout_seconds"]), bool) or not isinstance(z, float | int):
                all_problems.append(f"The provided poll_timeout_seconds was not an integer or a float. It was {type(z)}")
            elif z <= 0.0:
                all_problems.append(f"The provided poll_timeout_seconds was not positive. It was {z}")
            else:
                self.poll_timeout_seconds = z
        if "idle_delay_seconds" in kwargs:
            if isinstance((z := kwargs["idle_delay_seconds"]), bool) or not isinstance(z, float | int):
                all_problems.append(f"The provided idle_delay_seconds was not an integer or a float. It was {type(z)}")
            elif z < 0.0:
                all_problems.append(f"The provided idle_delay_seconds was negative. It was {z}")
            else:
                self.idle_delay_seconds = z
        # Faulted cycles always back off
        if "retry_delay_seconds" in kwargs:
            if isinstance((z := kwargs["retry_delay_seconds"]), bool) or not isinstance(z, float | int):
                all_problems.append(f"The provided retry_delay_seconds was not an integer or a float. It was {type(z)}")
            elif z <= 0.0:
                all_problems.append(f"The provided retry_delay_seconds was not positive. It was {z}")
            else:
                self.retry_delay_seconds = z
        return all_problems


@dataclass(slots=True)
class VaultConfig:
    root: str = "."
    daily_folder: str = ""

    def merge_in(self, **kwargs) -> List[str]:
        all_problems = []
        for name in ("root", "daily_folder"):
            if name in kwargs:
                if not isinstance((z := kwargs[name]), str):
                    all_problems.append(f"The provided vault {name} was not a string. It was {type(z)}")
                else:
                    setattr(self, name, z)
        return all_problems
