"""External services used by the bookkeeping flows."""
