"""Reconnecting client — the browser side of the reload channel.

The client is a small state machine. ``transition()`` is the reference
implementation in Python; ``render_client_script()`` emits the same table
in JavaScript over ``EventSource`` for injection into served pages.

Phases::

    disconnected ──start/retry──▶ connecting ──opened──▶ open
         ▲                             │                   │
         └──────── error (attempts < max) ◀────────────────┘
                                       │
                          error (attempts == max) ──▶ given-up

``reload`` in ``connecting``/``open`` reloads the page (``reloading``);
``unload`` from anywhere cancels the retry timer and closes the channel
(``closed``). Retry delays grow linearly: ``attempts × base_ms``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from string import Template


class Phase(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    GIVEN_UP = "given-up"
    RELOADING = "reloading"
    CLOSED = "closed"


class ClientEvent(str, Enum):
    START = "start"
    RETRY = "retry"
    OPENED = "opened"
    CONNECTED = "connected"
    RELOAD = "reload"
    ERROR = "error"
    UNLOAD = "unload"


class ActionKind(str, Enum):
    OPEN = "open"
    CLOSE = "close"
    SCHEDULE = "schedule"
    CANCEL = "cancel"
    RELOAD = "reload"


@dataclass(frozen=True, slots=True)
class Action:
    """A side effect requested by a transition.

    Attributes:
        kind: What to do.
        delay_ms: Retry delay, for ``SCHEDULE`` only.

    """

    kind: ActionKind
    delay_ms: int = 0


@dataclass(frozen=True, slots=True)
class ReconnectPolicy:
    """Bounds on reconnection.

    Attributes:
        max_retries: Retries after a failure before giving up.
        base_ms: Backoff step; retry *n* waits ``n * base_ms``.

    """

    max_retries: int = 10
    base_ms: int = 1000

    def delay_ms(self, attempt: int) -> int:
        return attempt * self.base_ms


@dataclass(frozen=True, slots=True)
class ClientState:
    phase: Phase = Phase.DISCONNECTED
    attempts: int = 0


@dataclass(frozen=True, slots=True)
class Transition:
    state: ClientState
    actions: tuple[Action, ...] = field(default=())


_LIVE = frozenset({Phase.CONNECTING, Phase.OPEN})


def transition(state: ClientState, event: ClientEvent, policy: ReconnectPolicy) -> Transition:
    """Apply one event to the client state.

    Events that do not apply to the current phase leave it unchanged and
    request no actions.

    """
    phase = state.phase

    if event is ClientEvent.UNLOAD:
        return Transition(
            ClientState(Phase.CLOSED, state.attempts),
            (Action(ActionKind.CANCEL), Action(ActionKind.CLOSE)),
        )

    if event in (ClientEvent.START, ClientEvent.RETRY):
        if phase is not Phase.DISCONNECTED:
            return Transition(state)
        return Transition(
            ClientState(Phase.CONNECTING, state.attempts),
            (Action(ActionKind.OPEN),),
        )

    if phase not in _LIVE:
        return Transition(state)

    if event in (ClientEvent.OPENED, ClientEvent.CONNECTED):
        return Transition(ClientState(Phase.OPEN, 0))

    if event is ClientEvent.RELOAD:
        return Transition(
            ClientState(Phase.RELOADING, state.attempts),
            (Action(ActionKind.RELOAD),),
        )

    # ClientEvent.ERROR
    if state.attempts < policy.max_retries:
        attempts = state.attempts + 1
        return Transition(
            ClientState(Phase.DISCONNECTED, attempts),
            (
                Action(ActionKind.CLOSE),
                Action(ActionKind.SCHEDULE, policy.delay_ms(attempts)),
            ),
        )
    return Transition(
        ClientState(Phase.GIVEN_UP, state.attempts),
        (Action(ActionKind.CLOSE),),
    )


# Mirrors transition() above; keep the two in step.
_CLIENT_SCRIPT = Template("""\
<script data-mew-reload>
(function() {
  if (window.__mewReload) return;
  window.__mewReload = true;
  var ENDPOINT = $endpoint, MAX_RETRIES = $max_retries, BASE_MS = $base_ms;
  var state = {phase: "disconnected", attempts: 0};
  var source = null, retry = null;

  function transition(s, event) {
    var live = s.phase === "connecting" || s.phase === "open";
    switch (event) {
      case "unload":
        return [{phase: "closed", attempts: s.attempts}, ["cancel", "close"]];
      case "start":
      case "retry":
        if (s.phase !== "disconnected") return [s, []];
        return [{phase: "connecting", attempts: s.attempts}, ["open"]];
      case "opened":
      case "connected":
        if (!live) return [s, []];
        return [{phase: "open", attempts: 0}, []];
      case "reload":
        if (!live) return [s, []];
        return [{phase: "reloading", attempts: s.attempts}, ["reload"]];
      case "error":
        if (!live) return [s, []];
        if (s.attempts < MAX_RETRIES) {
          return [{phase: "disconnected", attempts: s.attempts + 1}, ["close", "schedule"]];
        }
        return [{phase: "given-up", attempts: s.attempts}, ["close"]];
    }
    return [s, []];
  }

  function run(action) {
    if (action === "open") {
      source = new EventSource(ENDPOINT);
      source.onopen = function() { dispatch("opened"); };
      source.onerror = function() { dispatch("error"); };
      source.onmessage = function(e) {
        if (e.data === "connected" || e.data === "reload") dispatch(e.data);
      };
    } else if (action === "close") {
      if (source) { source.close(); source = null; }
    } else if (action === "schedule") {
      retry = setTimeout(function() { retry = null; dispatch("retry"); },
                         state.attempts * BASE_MS);
    } else if (action === "cancel") {
      if (retry) { clearTimeout(retry); retry = null; }
    } else if (action === "reload") {
      location.reload();
    }
  }

  function dispatch(event) {
    var next = transition(state, event);
    state = next[0];
    next[1].forEach(run);
    if (state.phase === "given-up" && event === "error") {
      console.warn("[mew] live reload stopped after " + MAX_RETRIES + " retries");
    }
  }

  window.addEventListener("pagehide", function() { dispatch("unload"); });
  dispatch("start");
})();
</script>
""")


def render_client_script(policy: ReconnectPolicy, endpoint: str) -> str:
    """Render the ``<script>`` tag injected into served pages."""
    return _CLIENT_SCRIPT.substitute(
        endpoint=json.dumps(endpoint),
        max_retries=int(policy.max_retries),
        base_ms=int(policy.base_ms),
    )
