"""
Line-oriented listings: one record per matching line, everything else is
dropped.
"""

import re

from ..parse_utils import filter_map, split_into_lines
from ..types import BranchInfo, ClientInfo, JobFix, JobInfo, UserInfo

# job000001 fixed by change 53 on 2020/04/04 by zogge@default (closed)
JOB_FIX_RE = re.compile(r"^(\S*) fixed by change (\d+) on (\S*) by (\S*?)@(\S*) \((.*?)\)$")

# job000001 on 2020/04/04 by zogge *open* 'a job description '
JOB_RE = re.compile(r"^(\S+) on (\S+) by (\S+) \*(\S+)\* '(.*)'$")

# Amanda.Snozzlefwitch <am@snoz.lol> (Amanda Snozzlefwitch) accessed 2020/05/07
USER_RE = re.compile(r"^(.*) <(.*)> \((.*)\) \S* (.*)$")

# Branch br-project-x-dev1 2020/04/25 'Created by Amanda.Snozzlefwitch. '
BRANCH_RE = re.compile(r"^Branch (\S*) (.*?) '(.*)'$")

# Client cli 2020/04/25 root /home/cli 'Created by super. '
CLIENT_RE = re.compile(r"^Client (\S*) (\S*) root (.*) '(.*)'$")


def parse_job_fix(line: str) -> JobFix | None:
    match = JOB_FIX_RE.match(line)
    if not match:
        return None
    job, chnum, date, user, client, status = match.groups()
    return JobFix(job=job, chnum=chnum, date=date, user=user, client=client, status=status)


def parse_fixes_output(output: str) -> list[JobFix]:
    return filter_map(parse_job_fix, split_into_lines(output))


def parse_job_line(line: str) -> JobInfo | None:
    match = JOB_RE.match(line)
    if not match:
        return None
    job, date, user, status, description = match.groups()
    return JobInfo(job=job, date=date, user=user, status=status, description=description)


def parse_jobs_output(output: str) -> list[JobInfo]:
    return filter_map(parse_job_line, split_into_lines(output))


def parse_user_line(line: str) -> UserInfo | None:
    match = USER_RE.match(line)
    if not match:
        return None
    user, email, full_name, access_date = match.groups()
    return UserInfo(user=user, email=email, full_name=full_name, access_date=access_date)


def parse_users_output(output: str) -> list[UserInfo]:
    return filter_map(parse_user_line, split_into_lines(output))


def parse_branch_line(line: str) -> BranchInfo | None:
    match = BRANCH_RE.match(line)
    if not match:
        return None
    branch, date, description = match.groups()
    return BranchInfo(branch=branch, date=date, description=description)


def parse_branches_output(output: str) -> list[BranchInfo]:
    return filter_map(parse_branch_line, split_into_lines(output))


def parse_client_line(line: str) -> ClientInfo | None:
    match = CLIENT_RE.match(line)
    if not match:
        return None
    client, date, root, description = match.groups()
    return ClientInfo(client=client, date=date, root=root, description=description)


def parse_clients_output(output: str) -> list[ClientInfo]:
    return filter_map(parse_client_line, split_into_lines(output))
