"""
Parameters class for lpbridge solvers
"""
import os
import tempfile
from typing import Optional, List


class Parameters:
    """
    Configuration parameters for the solve strategies.

    Attributes
    ----------
    executable : str
        External solver binary (default: 'highs')
    work_dir : str or None
        Directory for temporary model/solution files
        (default: None, the system temporary directory)
    time_limit : float or None
        Maximum time in seconds (default: None, no limit)
    mip_rel_gap : float or None
        Relative MIP optimality gap, native solver only (default: None)
    presolve : bool
        Enable presolve (default: True)
    log_to_console : bool
        Let the native solver print its log (default: False)
    stdout_file : str or None
        File receiving the external solver's standard output (default: None)
    stderr_file : str or None
        File receiving the external solver's standard error (default: None)

    Examples
    --------
    >>> param = Parameters()
    >>> param.time_limit = 60.0
    >>> param.executable = '/opt/highs/bin/highs'
    """

    ENV_EXECUTABLE = 'LPBRIDGE_HIGHS_EXECUTABLE'
    ENV_WORK_DIR = 'LPBRIDGE_WORK_DIR'
    ENV_TIME_LIMIT = 'LPBRIDGE_TIME_LIMIT'

    def __init__(self):
        self.executable = 'highs'
        self.work_dir: Optional[str] = None
        self.time_limit: Optional[float] = None
        self.mip_rel_gap: Optional[float] = None
        self.presolve = True
        self.log_to_console = False
        self.stdout_file: Optional[str] = None
        self.stderr_file: Optional[str] = None

    def __repr__(self):
        return (f"Parameters(executable={self.executable!r}, "
                f"work_dir={self.work_dir!r}, "
                f"time_limit={self.time_limit}, "
                f"presolve={self.presolve})")

    def resolved_work_dir(self) -> str:
        """Directory where temporary files are created"""
        return self.work_dir or tempfile.gettempdir()

    def to_native_options(self) -> dict:
        """Convert to the options dictionary of the embedded solver"""
        options = {
            'disp': bool(self.log_to_console),
            'presolve': bool(self.presolve),
        }
        if self.time_limit is not None:
            options['time_limit'] = float(self.time_limit)
        if self.mip_rel_gap is not None:
            options['mip_rel_gap'] = float(self.mip_rel_gap)
        return options

    def to_command_line(self) -> List[str]:
        """Convert to extra command line options of the external solver"""
        args = []
        if self.time_limit is not None:
            args += ['--time_limit', str(float(self.time_limit))]
        if not self.presolve:
            args += ['--presolve', 'off']
        return args

    @classmethod
    def from_dict(cls, d):
        """Create Parameters from dictionary"""
        param = cls()
        for key, value in d.items():
            if hasattr(param, key):
                setattr(param, key, value)
        return param

    @classmethod
    def from_env(cls, environ=None):
        """Create Parameters from ``LPBRIDGE_*`` environment variables"""
        environ = os.environ if environ is None else environ
        param = cls()
        if environ.get(cls.ENV_EXECUTABLE):
            param.executable = environ[cls.ENV_EXECUTABLE]
        if environ.get(cls.ENV_WORK_DIR):
            param.work_dir = environ[cls.ENV_WORK_DIR]
        if environ.get(cls.ENV_TIME_LIMIT):
            param.time_limit = float(environ[cls.ENV_TIME_LIMIT])
        return param

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'executable': self.executable,
            'work_dir': self.work_dir,
            'time_limit': self.time_limit,
            'mip_rel_gap': self.mip_rel_gap,
            'presolve': self.presolve,
            'log_to_console': self.log_to_console,
            'stdout_file': self.stdout_file,
            'stderr_file': self.stderr_file,
        }
