"""
Plan and apply address resources.

A plan reconciles the manifest (desired) with the state file (last known):

    in manifest only          -> create
    in both, fields differ    -> update (changed fields listed)
    in state only             -> delete
    in both, identical        -> noop

Apply runs the plan in phases (delete, update, create) so hostnames released
by deletes are free before creates look them up. Within a phase up to
``parallelism`` resources run concurrently; the allocation guard inside the
lifecycle keeps concurrent creates from racing for the same address. State
is saved after every finished resource, so a failure keeps everything that
already succeeded.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from phpipam_provider.exceptions import AddressLeakedError, IPAMError
from phpipam_provider.models.enums import PlanAction
from phpipam_provider.resource.address import AddressResource
from phpipam_provider.resource.schema import AddressResourceConfig, AddressResourceState
from phpipam_provider.resource.store import StateStore
from phpipam_provider.utils.logger import get_logger

logger = get_logger(__name__)

PHASES = (PlanAction.DELETE, PlanAction.UPDATE, PlanAction.CREATE)


@dataclass
class PlannedChange:
    """One resource's planned action."""

    name: str
    action: PlanAction
    desired: AddressResourceConfig | None = None
    current: AddressResourceState | None = None
    changed: list[str] = field(default_factory=list)

    @property
    def reallocates(self) -> bool:
        """Update that moves the address to another section or subnet."""
        return self.action == PlanAction.UPDATE and bool(
            {"section", "subnet"} & set(self.changed)
        )


@dataclass
class ApplyResult:
    """Outcome of an apply, destroy or refresh run."""

    done: list[PlannedChange] = field(default_factory=list)
    errors: dict[str, IPAMError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def make_plan(
    manifest: dict[str, AddressResourceConfig],
    state: dict[str, AddressResourceState],
) -> list[PlannedChange]:
    """Diff manifest against state; deletes first, then updates, then creates."""
    changes = []
    for name in sorted(set(manifest) | set(state)):
        desired = manifest.get(name)
        current = state.get(name)
        if current is None:
            changes.append(PlannedChange(name, PlanAction.CREATE, desired=desired))
        elif desired is None:
            changes.append(PlannedChange(name, PlanAction.DELETE, current=current))
        else:
            changed = current.changed_fields(desired)
            action = PlanAction.UPDATE if changed else PlanAction.NOOP
            changes.append(PlannedChange(name, action, desired, current, changed))

    order = {action: i for i, action in enumerate(PHASES + (PlanAction.NOOP,))}
    return sorted(changes, key=lambda c: order[c.action])


class Provisioner:
    """
    Drives an ``AddressResource`` from a manifest and a state file.

    Args:
        resource: Resource binding to the lifecycle.
        store: State file.
        parallelism: Resources processed concurrently within a phase.
    """

    def __init__(self, resource: AddressResource, store: StateStore, parallelism: int = 1):
        self.resource = resource
        self.store = store
        self.parallelism = max(1, parallelism)
        self._state_lock = threading.Lock()

    def plan(self, manifest: dict[str, AddressResourceConfig]) -> list[PlannedChange]:
        return make_plan(manifest, self.store.load())

    # =========================================================================
    # Apply / Destroy
    # =========================================================================

    def apply(
        self,
        manifest: dict[str, AddressResourceConfig],
        force_release: bool = False,
    ) -> ApplyResult:
        """Execute the plan for ``manifest``; stops after the first failing phase."""
        state = self.store.load()
        return self._run(make_plan(manifest, state), state, force_release)

    def destroy(self, force_release: bool = False) -> ApplyResult:
        """Release every tracked address."""
        state = self.store.load()
        return self._run(make_plan({}, state), state, force_release)

    def _run(
        self,
        changes: list[PlannedChange],
        state: dict[str, AddressResourceState],
        force_release: bool,
    ) -> ApplyResult:
        result = ApplyResult()
        for phase in PHASES:
            batch = [c for c in changes if c.action == phase]
            if not batch:
                continue

            with ThreadPoolExecutor(max_workers=self.parallelism) as pool:
                futures = {
                    pool.submit(self._apply_one, c, state, force_release): c
                    for c in batch
                }
                for future, change in futures.items():
                    try:
                        future.result()
                        result.done.append(change)
                    except IPAMError as e:
                        logger.error(f"{change.action.value} {change.name} failed: {e}")
                        result.errors[change.name] = e

            if result.errors:
                break
        return result

    def _apply_one(
        self,
        change: PlannedChange,
        state: dict[str, AddressResourceState],
        force_release: bool,
    ) -> None:
        match change.action:
            case PlanAction.CREATE:
                new_state = self.resource.create(change.desired)
                logger.info(f"Created {change.name}: {new_state.ip_address}")
                self._record(state, change.name, new_state)

            case PlanAction.UPDATE:
                try:
                    new_state = self.resource.update(change.current, change.desired)
                except AddressLeakedError as e:
                    # The new address exists; track it instead of the old one
                    self._record(state, change.name, self._adopt(e.new_address_id, change))
                    raise
                logger.info(f"Updated {change.name}: {', '.join(change.changed)}")
                self._record(state, change.name, new_state)

            case PlanAction.DELETE:
                self.resource.delete(change.current, force=force_release)
                logger.info(f"Deleted {change.name}")
                self._record(state, change.name, None)

    def _adopt(self, address_id: str, change: PlannedChange) -> AddressResourceState:
        """State for an address created during a failed update."""
        try:
            return self.resource.import_id(address_id)
        except IPAMError as e:
            logger.warning(
                f"Could not read adopted address {address_id} for {change.name}: {e}"
            )
            return AddressResourceState(id=address_id, **change.desired.model_dump())

    def _record(
        self,
        state: dict[str, AddressResourceState],
        name: str,
        new_state: AddressResourceState | None,
    ) -> None:
        with self._state_lock:
            if new_state is None:
                state.pop(name, None)
            else:
                state[name] = new_state
            self.store.save(state)

    # =========================================================================
    # Refresh
    # =========================================================================

    def refresh(self) -> ApplyResult:
        """
        Re-read every tracked address.

        Addresses that no longer exist are dropped from state and reported
        as ``delete``; changed ones as ``update``.
        """
        state = self.store.load()
        result = ApplyResult()
        for name, current in sorted(state.items()):
            try:
                fresh = self.resource.read(current)
            except IPAMError as e:
                logger.error(f"refresh {name} failed: {e}")
                result.errors[name] = e
                continue

            if fresh == current:
                continue
            if fresh is None:
                result.done.append(PlannedChange(name, PlanAction.DELETE, current=current))
            else:
                changed = [
                    f
                    for f in AddressResourceState.model_fields
                    if getattr(fresh, f) != getattr(current, f)
                ]
                result.done.append(
                    PlannedChange(name, PlanAction.UPDATE, fresh.config(), current, changed)
                )
            self._record(state, name, fresh)
        return result
