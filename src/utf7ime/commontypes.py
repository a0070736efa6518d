# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later


class Utf7ImeError(Exception):
    pass


class NoActiveSession(Utf7ImeError):
    def __init__(self):
        return super().__init__("Key events delivered without an active input session")
