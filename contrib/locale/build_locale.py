#!/usr/bin/env python3
#
# Compiles the .po translations under identity_wizard/locale into the .mo
# catalogs that are shipped with the package.
#
# Dependencies:
# $ sudo apt-get install gettext

import glob
import os
import subprocess
import sys

project_root = os.path.abspath(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
locale_dir = os.path.join(project_root, "identity_wizard", "locale")

try:
    subprocess.check_output(["msgfmt", "--version"])
except (subprocess.CalledProcessError, OSError):
    sys.exit("missing gettext. Maybe try 'apt install gettext'")

for po_file in sorted(glob.glob(os.path.join(locale_dir, "*", "LC_MESSAGES", "identity_wizard.po"))):
    mo_file = po_file[:-len(".po")] + ".mo"
    lang = os.path.basename(os.path.dirname(os.path.dirname(po_file)))
    print(f"Compiling {lang}")
    subprocess.check_output(["msgfmt", "--check", f"--output-file={mo_file}", po_file])
