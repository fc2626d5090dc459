from enum import Enum
from typing import Any, Dict, Optional, Union


class DependencyType(Enum):
    """
    Enum representing the precedence relationship between two tasks.
    """

    FINISH_TO_START = "FS"
    START_TO_START = "SS"
    FINISH_TO_FINISH = "FF"
    START_TO_FINISH = "SF"


class DependencyError(Exception):
    """Exception raised for errors in the Dependency class."""

    pass


class Dependency:
    """
    A directed dependency edge from a predecessor task to a successor task.

    ``lag_days`` is expressed in working days; negative values model lead
    time.
    """

    def __init__(
        self,
        predecessor_id: str,
        successor_id: str,
        dependency_type: Union[str, DependencyType] = DependencyType.FINISH_TO_START,
        lag_days: int = 0,
        id: Optional[str] = None,
    ):
        if predecessor_id is None or successor_id is None:
            raise DependencyError("Dependency endpoints cannot be None")
        if predecessor_id == successor_id:
            raise DependencyError(f"Task {predecessor_id} cannot depend on itself")
        self.predecessor_id = predecessor_id
        self.successor_id = successor_id

        if isinstance(dependency_type, DependencyType):
            self.dependency_type = dependency_type
        else:
            try:
                self.dependency_type = DependencyType(str(dependency_type).upper())
            except ValueError:
                valid_types = [t.value for t in DependencyType]
                raise DependencyError(
                    f"Invalid dependency type: {dependency_type}. Must be one of {valid_types}"
                )

        if isinstance(lag_days, bool) or not isinstance(lag_days, int):
            raise DependencyError("Lag must be an integer number of days")
        self.lag_days = lag_days

        self.id = id

    @property
    def type_code(self) -> str:
        return self.dependency_type.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "predecessor_id": self.predecessor_id,
            "successor_id": self.successor_id,
            "dependency_type": self.type_code,
            "lag_days": self.lag_days,
        }

    def __repr__(self):
        lag = f"+{self.lag_days}" if self.lag_days >= 0 else str(self.lag_days)
        return f"Dependency({self.predecessor_id}->{self.successor_id} {self.type_code}{lag})"
