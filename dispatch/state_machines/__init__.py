"""Order and rider state machines (transition guards)."""
