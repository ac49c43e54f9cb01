"""
Role-based access control for Hub.

Roles:
1. ADMIN - Platform administrator (users, companies, KPI cycles)
2. COMPANY - Company account (employees, surveys, rewards, resources)
3. MANAGER - Team manager (team pulse, weekly KPI surveys, requests)
4. EMPLOYEE - Employee (surveys, achievements, rewards, requests)

Visibility is a static table: every role maps to the navigation items of
its portal and to the micro-app cards shown on the dashboard.
"""

# Role Constants
ROLE_ADMIN = 'admin'
ROLE_COMPANY = 'company'
ROLE_MANAGER = 'manager'
ROLE_EMPLOYEE = 'employee'

# All roles in hierarchy order (highest to lowest)
ALL_ROLES = [
    ROLE_ADMIN,
    ROLE_COMPANY,
    ROLE_MANAGER,
    ROLE_EMPLOYEE,
]

# Role display names
ROLE_NAMES = {
    ROLE_ADMIN: 'Administrator',
    ROLE_COMPANY: 'Company',
    ROLE_MANAGER: 'Manager',
    ROLE_EMPLOYEE: 'Employee',
}

# Portal home page per role
ROLE_PORTALS = {
    ROLE_ADMIN: '/admin',
    ROLE_COMPANY: '/company',
    ROLE_MANAGER: '/manager',
    ROLE_EMPLOYEE: '/employee',
}

# Sidebar navigation per role: (item id, label)
ROLE_NAV_ITEMS = {
    ROLE_ADMIN: [
        ('users', 'Users List'),
        ('create-user', 'Create User'),
        ('managers', 'Manager List'),
        ('companies', 'Company List'),
        ('surveys', 'Surveys Setup'),
        ('metrics', 'Metrics'),
        ('kpi-cycles', 'KPI and Cycles'),
        ('system', 'Settings'),
    ],
    ROLE_COMPANY: [
        ('dashboard', 'Dashboard'),
        ('employees', 'Employees'),
        ('surveys', 'Surveys'),
        ('rewards', 'Rewards'),
        ('requests', 'Requests'),
        ('resources', 'Resources'),
        ('metrics', 'Metrics'),
        ('kpi-questions', 'KPI Questions'),
    ],
    ROLE_MANAGER: [
        ('employees', 'My Team'),
        ('kpi-surveys', 'Employee KPI'),
        ('requests', 'Requests'),
        ('metrics', 'Metrics'),
        ('engagement', 'Engagement'),
        ('surveys', 'Surveys'),
    ],
    ROLE_EMPLOYEE: [
        ('home', 'Home'),
        ('surveys', 'Surveys'),
        ('feedback', 'Feedback'),
        ('achievements', 'Achievements'),
        ('rewards', 'Rewards'),
        ('requests', 'Requests'),
        ('settings', 'Settings'),
    ],
}

# Dashboard micro-app cards and the roles allowed to open them
MICRO_APPS = [
    {
        'id': 'onboarding',
        'title': 'Onboarding',
        'description': 'Complete your onboarding journey and get familiar with the team.',
        'url': '/employee',
        'roles': [ROLE_EMPLOYEE, ROLE_ADMIN],
    },
    {
        'id': 'employee',
        'title': 'Employee Portal',
        'description': 'Access surveys, achievements, rewards and your requests.',
        'url': '/employee',
        'roles': [ROLE_EMPLOYEE, ROLE_ADMIN],
    },
    {
        'id': 'manager',
        'title': 'Manager Portal',
        'description': 'Run weekly KPI check-ins and review your team.',
        'url': '/manager',
        'roles': [ROLE_MANAGER, ROLE_ADMIN],
    },
    {
        'id': 'company',
        'title': 'Company Management',
        'description': 'Manage company settings, teams, and organizational structure.',
        'url': '/company',
        'roles': [ROLE_COMPANY, ROLE_ADMIN],
    },
    {
        'id': 'admin',
        'title': 'Administration',
        'description': 'Manage users, companies and KPI cycles.',
        'url': '/admin',
        'roles': [ROLE_ADMIN],
    },
]


def get_user_roles(store, user_id: str) -> list:
    """Roles of a user, highest first."""
    if not user_id:
        return []
    roles = store.rpc('get_user_roles', _user_id=user_id) or []
    return sort_roles(roles)


def sort_roles(roles) -> list:
    """Unique known roles in hierarchy order."""
    return [role for role in ALL_ROLES if role in set(roles)]


def get_primary_role(roles) -> str:
    ordered = sort_roles(roles)
    return ordered[0] if ordered else None


def get_role_display_name(role: str) -> str:
    """Get display name for a role."""
    return ROLE_NAMES.get(role, role)


def has_role(user: dict, role: str) -> bool:
    """Check if user holds a role. Admins pass every role check."""
    if not user:
        return False
    roles = user.get('roles', [])
    return role in roles or ROLE_ADMIN in roles


def has_any_role(user: dict, roles: list) -> bool:
    return any(has_role(user, role) for role in roles)


def is_admin(user: dict) -> bool:
    """Check if user is admin."""
    return bool(user) and ROLE_ADMIN in user.get('roles', [])


def nav_items_for(role: str) -> list:
    """Sidebar items of a role's portal."""
    return [{'id': item_id, 'label': label} for item_id, label in ROLE_NAV_ITEMS.get(role, [])]


def available_apps(roles) -> list:
    """Micro-app cards visible to any of the given roles."""
    roles = set(roles or [])
    return [app for app in MICRO_APPS if roles.intersection(app['roles'])]


def portal_for(roles) -> str:
    """Landing portal of the highest role."""
    role = get_primary_role(roles)
    return ROLE_PORTALS.get(role, '/dashboard')
