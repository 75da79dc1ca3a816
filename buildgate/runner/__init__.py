from buildgate.runner.runner import Runner

__all__ = ['Runner']
