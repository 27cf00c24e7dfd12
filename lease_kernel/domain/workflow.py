"""
Lease workflow definitions (``lease_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the two state machines of the lease lifecycle and
the declarative definitions of each:

* ``RENTAL_WORKFLOW`` -- no_proposal -> proposed -> {agreed, rejected}.
* ``PAYMENT_LEDGER_WORKFLOW`` -- a single ``current`` state that every
  successful pay_rent replaces with a new version of itself.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``archives_source=True`` marks transitions that consume the exercised
    contract version.
    """
    from_state: str
    to_state: str
    action: str
    archives_source: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a contract lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                "is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action!r} references "
                    f"undeclared state ({t.from_state!r} -> {t.to_state!r})"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state {t.from_state!r} "
                    f"has outgoing transition {t.action!r}"
                )

    def transition_for(self, from_state: str, action: str) -> Transition | None:
        """Return the transition fired by ``action`` in ``from_state``, if any."""
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def require_transition(self, from_state: str, action: str) -> Transition:
        """
        Return the transition fired by ``action`` in ``from_state``.

        Raises:
            ValueError: The workflow defines no such transition.
        """
        transition = self.transition_for(from_state, action)
        if transition is None:
            raise ValueError(
                f"Workflow {self.name}: no transition for {action!r} "
                f"from {from_state!r}"
            )
        return transition

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states


class RentalState:
    """States of a rental proposal."""

    NO_PROPOSAL = "no_proposal"
    PROPOSED = "proposed"
    AGREED = "agreed"
    REJECTED = "rejected"


class LedgerState:
    """States of a payment ledger."""

    CURRENT = "current"


RENTAL_WORKFLOW = Workflow(
    name="rental",
    description="Landlord proposes lease terms; tenant accepts or rejects.",
    initial_state=RentalState.NO_PROPOSAL,
    states=(
        RentalState.NO_PROPOSAL,
        RentalState.PROPOSED,
        RentalState.AGREED,
        RentalState.REJECTED,
    ),
    transitions=(
        Transition(RentalState.NO_PROPOSAL, RentalState.PROPOSED, "invite"),
        Transition(RentalState.PROPOSED, RentalState.AGREED, "accept", archives_source=True),
        Transition(RentalState.PROPOSED, RentalState.REJECTED, "reject", archives_source=True),
    ),
    terminal_states=(RentalState.AGREED, RentalState.REJECTED),
)

PAYMENT_LEDGER_WORKFLOW = Workflow(
    name="payment_ledger",
    description="Each rent payment replaces the current ledger version.",
    initial_state=LedgerState.CURRENT,
    states=(LedgerState.CURRENT,),
    transitions=(
        Transition(LedgerState.CURRENT, LedgerState.CURRENT, "pay_rent", archives_source=True),
    ),
)
