"""Ensemble Workspace package.

Scheduling and attendance coordination for musical teams, organized by
feature modules (users, teams, assignments, presences, ...) with a thin Flask
controller layer on top of service/repository layers.
"""
