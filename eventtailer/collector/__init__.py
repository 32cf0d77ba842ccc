"""Collector package for the event tailer.

Submodules
----------
informer      -- Informer: paginated list + watch loop feeding a Store and a
                 ResourceEventHandler; relists on 410, backs off on errors.
classifier    -- is_old: staleness check against the watcher start time.
counters      -- EventCounters / CounterSnapshot shared with the stats reporter.
event_watcher -- EventWatcher: reports fresh events and drains the store.
stats         -- StatsReporter: periodic store size and counter logs.
"""
