"""Run the helm-packager command line tool with `python -m helm_packager`."""

from helm_packager.tool.helm_packager import main

if __name__ == "__main__":
    main()
