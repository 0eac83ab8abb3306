"""Absence Tracker - leave accrual and admission control for employee absences."""
