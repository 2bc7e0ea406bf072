"""Outputs subpackage: the HTML catalog report and its charts.

Imported lazily by the runner so ``--no-report`` runs never load
matplotlib.
"""
