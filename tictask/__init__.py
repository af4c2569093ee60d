"""TicTask: a focus/break interval timer that survives restarts."""
