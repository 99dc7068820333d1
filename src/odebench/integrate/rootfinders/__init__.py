"""Nonlinear solvers for the implicit equation of each time step."""

from .newtonraphson import NewtonRaphson

__all__ = ["NewtonRaphson"]
