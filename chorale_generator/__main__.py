"""Entry point wrapper for ``python -m chorale_generator``.

Execution is forwarded to :func:`chorale_generator.cli.main` so running the
package as a module behaves exactly like the installed
``chorale-generator`` console script.

Example
-------
::

    python -m chorale_generator --corpus data/chorales --seed 3 --output song.mid
"""

from .cli import main

if __name__ == "__main__":
    main()
