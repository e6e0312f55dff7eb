"""
Attitude Engine

Core modules:
- engine: score/level state and its publish/subscribe contract
- scroll_behavior, click_behavior, idle_behavior, tab_behavior, resize_behavior:
  detectors turning interaction events into scored deltas
- easter_eggs / egg_state: compound-condition triggers (imperative shell + pure reducer)
- clock: injectable time source and timers (ManualClock for tests and replays)
- session: per-session wiring of all of the above
"""
