"""Identity of a single reconciliation pass."""

import itertools
from dataclasses import dataclass, field

_sequence = itertools.count(1)


@dataclass(frozen=True)
class ResourceKey:
    """Identity of a watched resource."""

    kind: str
    namespace: str
    name: str

    def __str__(self):
        return f"{self.kind}({self.namespace}/{self.name})"


@dataclass(frozen=True)
class Reconciliation:
    """One pass over one resource, used as the prefix of every log line it emits.

    ``last_seen`` is the final body delivered by the watch when the pass was
    triggered by a deletion, so the reconciler can still tell where the
    resource used to point.
    """

    trigger: str
    key: ResourceKey
    last_seen: dict = None
    id: int = field(default_factory=lambda: next(_sequence))

    @property
    def kind(self):
        return self.key.kind

    @property
    def namespace(self):
        return self.key.namespace

    @property
    def name(self):
        return self.key.name

    def __str__(self):
        return f"Reconciliation #{self.id}({self.trigger}) {self.key}"
