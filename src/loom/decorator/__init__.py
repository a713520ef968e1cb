from .inject_decorator import DependencyDescriptor, declare_dependencies, get_dependencies, inject

__all__ = ["inject", "declare_dependencies", "get_dependencies", "DependencyDescriptor"]
