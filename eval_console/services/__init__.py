"""
services/ — admin API access and background work

Modules:
    admin_api.py           - Async REST client (httpx)
    data_loader.py         - Sequenced, failure-isolated reads per level
    poller.py              - Cancellable re-fetch of non-terminal runs
    progress.py            - Simulated (cosmetic) trigger progress
    evaluation_trigger.py  - Run-evaluation and resolve-flag actions
"""
