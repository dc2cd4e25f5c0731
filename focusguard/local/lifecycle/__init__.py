"""
The lifecycle package.
Arm and Disarm: the only operations a human drives. Arm installs and
registers the background loops and locks every artifact; Disarm undoes the
locking so the installation can be edited.
"""
from .controller import LifecycleController

__all__ = ['LifecycleController']
