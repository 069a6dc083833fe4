"""Run the face-matching report: python -m facematch_sdt --data-dir data"""

import sys

from .final_analysis import main

if __name__ == '__main__':
    sys.exit(main())
