# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from bindscope.cli import main

raise SystemExit(main())
