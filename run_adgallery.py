#!/usr/bin/env python3
"""
Ad Gallery launcher script.

Run this from the project root to start the gallery.
"""

if __name__ == '__main__':
    from adgallery.run_gui import main
    main()
