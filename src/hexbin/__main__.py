"""
Entry point module, in case you use `python -m hexbin`.

See also: https://docs.python.org/3/using/cmdline.html#cmdoption-m
"""
from .cli import main

if __name__ == '__main__':
    main(prog_name='hexbin')
