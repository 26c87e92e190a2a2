"""Scheduled webhook maintenance jobs.

Workflows are plain classes with a `run()` method; each module also
exposes `register_workflow(hatchet, ...)` so the hosting application can
schedule it with its Hatchet instance.

Usage:
    from cms_webhooks.jobs.workflows import log_cleanup

    log_cleanup.register_workflow(hatchet, delivery_logs)
"""
