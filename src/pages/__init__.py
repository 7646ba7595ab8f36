# Dashboard pages, keyed by the name used on the command line
from .alerts_page import AlertsPage
from .analysis_page import PowerAnalysisPage
from .base_page import DashboardPage
from .history_page import EnergyHistoryPage, TimeFilter
from .realtime_page import RealtimeMonitoringPage
from .reports_page import ReportsPage

PAGE_REGISTRY = {
    RealtimeMonitoringPage.name: RealtimeMonitoringPage,
    PowerAnalysisPage.name: PowerAnalysisPage,
    EnergyHistoryPage.name: EnergyHistoryPage,
    AlertsPage.name: AlertsPage,
    ReportsPage.name: ReportsPage,
}
