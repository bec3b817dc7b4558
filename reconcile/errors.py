from typing import Any, Optional


class SplitError(Exception):
    kind = "SplitError"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": str(self)}


class InvalidAmount(SplitError):
    kind = "InvalidAmount"

    def __init__(self, value: Any, participant_id: Optional[str] = None):
        self.value = value
        self.participant_id = participant_id
        if participant_id is None:
            message = f"Amount must be a positive number, got {value!r}"
        else:
            message = f"Invalid amount {value!r} for participant {participant_id}"
        super().__init__(message)


class NoParticipants(SplitError):
    kind = "NoParticipants"

    def __init__(self):
        super().__init__("At least one participant must be selected")


class UnsupportedPolicy(SplitError):
    kind = "UnsupportedPolicy"

    def __init__(self, policy: Any):
        self.policy = getattr(policy, "value", policy)
        super().__init__(f"Split policy {self.policy!r} is not supported")


class SplitMismatch(SplitError):
    kind = "SplitMismatch"

    def __init__(self, difference: int):
        self.difference = difference
        direction = "short" if difference > 0 else "over"
        super().__init__(
            f"Split amounts don't add up: {abs(difference)} minor units {direction} of the total"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["difference"] = self.difference
        return data
