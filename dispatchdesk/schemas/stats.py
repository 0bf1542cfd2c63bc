from dispatchdesk.schemas.base import CamelModel


class DashboardStats(CamelModel):
    total_calls_today: int
    interested_leads: int
    retry_queue: int
    dnc_count: int
    total_leads: int
    leads_in_queue: int
    onboarded_count: int
    avg_talk_time: int
    pipeline_value: float
    win_rate: int
    active_deals: int
