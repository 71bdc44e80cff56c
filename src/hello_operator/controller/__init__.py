"""HelloWorld reconciliation core."""

from .reconciler import HelloWorldReconciler, ReconcileResult

__all__ = ["HelloWorldReconciler", "ReconcileResult"]
