"""Governance-aware orchestration of agent tasks."""