from .visualization import plot_coefficients, plot_mesh

__all__ = ["plot_mesh", "plot_coefficients"]
