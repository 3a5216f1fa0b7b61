from app.workers.tasks.packages_expiration import run_package_expiration_sweep

__all__ = [
    "run_package_expiration_sweep",
]
