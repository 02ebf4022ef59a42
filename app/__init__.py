"""Notification service and client-side notification sync.

Kept as a regular package so the local ``app`` wins over any namespace
package of the same name found on ``sys.path``.
"""
