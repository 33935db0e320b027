"""Room state machine, snapshot projection, broadcasts and the timer loop."""
